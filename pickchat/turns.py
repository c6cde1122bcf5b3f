import enum
import logging
import queue
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from .candidates import CandidateSet
from .conversation import ConversationLog
from .streaming import StreamClosed, StreamingSession


logger = logging.getLogger("pickchat.turns")


class Phase(enum.Enum):
    AWAITING_SYSTEM_PROMPT = "awaiting-system-prompt"
    AWAITING_USER_MESSAGE = "awaiting-user-message"
    GENERATING = "generating"
    CANDIDATES_READY = "candidates-ready"
    CHOOSING_CANDIDATE = "choosing-candidate"

    @property
    def busy(self) -> bool:
        return self is Phase.GENERATING

    @property
    def accepts_input(self) -> bool:
        """False while a submit would be dropped (busy, or about to pick)."""
        return self not in (Phase.GENERATING, Phase.CANDIDATES_READY)


# --- events ---

@dataclass(frozen=True)
class Submit:
    text: str

@dataclass(frozen=True)
class Tick:
    pass

@dataclass(frozen=True)
class Quit:
    pass

Event = Union[Submit, Tick, StreamClosed, Quit]


# --- effects ---

@dataclass(frozen=True)
class SetSystemMessage:
    text: str

@dataclass(frozen=True)
class StartGeneration:
    prompt: str

@dataclass(frozen=True)
class Commit:
    index: int

@dataclass(frozen=True)
class ClearInput:
    pass

@dataclass(frozen=True)
class Exit:
    pass

Effect = Union[SetSystemMessage, StartGeneration, Commit, ClearInput, Exit]


def parse_choice(text: str, candidate_count: int) -> Optional[int]:
    """Index of the chosen candidate, or None when `text` isn't a valid choice."""
    try:
        num = int(text.strip())
    except ValueError:
        return None
    if 0 <= num < candidate_count:
        return num
    return None


def transition(phase: Phase, event: Event, candidate_count: int = 0) -> Tuple[Phase, List[Effect]]:
    '''
    The whole turn-taking table.

    Pure: the controller applies the returned effects. Pairs not handled
    below leave the phase alone and do nothing.
    '''
    if isinstance(event, Quit):
        return phase, [Exit()]

    if phase is Phase.AWAITING_SYSTEM_PROMPT:
        if isinstance(event, Submit):
            return Phase.AWAITING_USER_MESSAGE, [SetSystemMessage(event.text.strip())]

    elif phase is Phase.AWAITING_USER_MESSAGE:
        if isinstance(event, Submit):
            return Phase.GENERATING, [StartGeneration(event.text.strip())]

    elif phase is Phase.GENERATING:
        if isinstance(event, StreamClosed):
            return Phase.CANDIDATES_READY, []

    elif phase is Phase.CANDIDATES_READY:
        if isinstance(event, Tick):
            return Phase.CHOOSING_CANDIDATE, [ClearInput()]

    elif phase is Phase.CHOOSING_CANDIDATE:
        if isinstance(event, Submit):
            num = parse_choice(event.text, candidate_count)
            if num is None:
                # anything that isn't a valid index is a new prompt
                return Phase.GENERATING, [StartGeneration(event.text.strip())]
            return Phase.AWAITING_USER_MESSAGE, [Commit(num)]

    return phase, []


class TurnController:
    '''
    Drives one chat session.

    Owns the phase, the conversation log and the active streaming session.
    Background consumers only ever post StreamClosed into `self.done`;
    the phase is changed on the control loop, inside tick().

        ctl = TurnController(backend)
        ctl.submit("You are terse.")
        ctl.submit("hello")
        while ctl.phase.busy: ctl.tick()
    '''
    def __init__(self, backend, log: Optional[ConversationLog] = None,
                 on_clear_input: Optional[Callable[[], None]] = None):
        self.backend = backend
        self.log = log if log is not None else ConversationLog()
        self.on_clear_input = on_clear_input
        self.phase = Phase.AWAITING_SYSTEM_PROMPT
        self.session: Optional[StreamingSession] = None
        self.done: queue.Queue = queue.Queue()
        self.generation = 0
        self.quit_requested = False

    @property
    def candidates(self) -> Optional[CandidateSet]:
        return self.session.candidates if self.session else None

    def submit(self, text: str):
        if self.phase.busy:
            logger.debug("ignoring input while generating")
            return
        self.handle(Submit(text))

    def quit(self):
        self.handle(Quit())

    def tick(self):
        while True:
            try:
                closed = self.done.get_nowait()
            except queue.Empty:
                break
            if closed.generation != self.generation:
                logger.debug("dropping stale completion of generation %d", closed.generation)
                continue
            if closed.error is not None:
                raise closed.error
            self.handle(closed)
            return
        self.handle(Tick())

    def handle(self, event: Event):
        count = self.candidates.count() if self.candidates else 0
        new_phase, effects = transition(self.phase, event, count)
        if new_phase is not self.phase:
            logger.debug("phase %s -> %s on %s", self.phase.value, new_phase.value, type(event).__name__)
        self.phase = new_phase
        for effect in effects:
            self._apply(effect)

    def _apply(self, effect: Effect):
        if isinstance(effect, SetSystemMessage):
            if effect.text:
                self.log.append("system", effect.text)
            self.backend.set_system_message(effect.text)

        elif isinstance(effect, StartGeneration):
            self._start_generation(effect.prompt)

        elif isinstance(effect, Commit):
            text = self.session.candidates.get(effect.index)
            self.log.append("assistant", text)
            self.backend.append_assistant_message(text)
            logger.info("generation %d: committed candidate %d", self.generation, effect.index)
            self.session = None

        elif isinstance(effect, ClearInput):
            if self.on_clear_input: self.on_clear_input()

        elif isinstance(effect, Exit):
            if self.session is not None:
                self.session.abandon()
            self.quit_requested = True

    def _start_generation(self, prompt: str):
        if self.session is not None:
            self.session.abandon()
        if prompt:
            self.log.append("user", prompt)
        self.generation += 1
        count, deltas = self.backend.create_response(prompt)
        self.session = StreamingSession(self.generation, count, deltas)
        logger.info("generation %d: expecting %d candidates", self.generation, count)
        self.session.start(self.done)
