import logging
import queue
import threading
from dataclasses import dataclass
from typing import Iterable, Optional

from .candidates import CandidateSet, CandidateIndexError


logger = logging.getLogger("pickchat.streaming")


@dataclass(frozen=True)
class Delta:
    index: int
    fragment: str


@dataclass(frozen=True)
class StreamClosed:
    generation: int
    error: Optional[BaseException] = None


class StreamingSession:
    '''
    One outstanding generation request.

    The session owns a fresh CandidateSet; a superseded session keeps
    writing into its own set, which nobody reads anymore.

        session = StreamingSession(1, *backend.create_response("hi"))
        session.start(done_queue)
    '''
    def __init__(self, generation: int, expected_count: int, deltas: Iterable[Delta]):
        self.generation = generation
        self.expected_count = expected_count
        self.deltas = deltas
        self.candidates = CandidateSet.create(expected_count)
        self._abandoned = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def abandoned(self) -> bool:
        return self._abandoned.is_set()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, done: queue.Queue) -> threading.Thread:
        if self._thread is not None:
            raise RuntimeError(f"generation {self.generation} already started")
        self._thread = threading.Thread(target=self._consume, args=(done,), daemon=True,
                                        name=f"pickchat-gen-{self.generation}")
        self._thread.start()
        return self._thread

    def abandon(self):
        """Stop caring about this session. Never blocks."""
        self._abandoned.set()
        cancel = getattr(self.deltas, "cancel", None)
        if callable(cancel):
            cancel()

    def _consume(self, done: queue.Queue):
        error = None
        received = 0
        try:
            for delta in self.deltas:
                if self._abandoned.is_set(): break
                self.candidates.apply_delta(delta.index, delta.fragment)
                received += 1
        except CandidateIndexError as e:
            logger.error("generation %d: backend sent a bad candidate index: %s", self.generation, e)
            error = e
        except Exception:
            logger.warning("generation %d: stream failed after %d deltas", self.generation, received, exc_info=True)
        logger.debug("generation %d: stream closed after %d deltas", self.generation, received)
        done.put(StreamClosed(self.generation, error))
