import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Iterator, List, Protocol, Tuple

from litellm import completion

from .hooks import overridable
from .keys import Keys
from .streaming import Delta


logger = logging.getLogger("pickchat.backend")


class Backend(Protocol):
    def set_system_message(self, text: str) -> None: ...
    def create_response(self, prompt: str) -> Tuple[int, Iterator[Delta]]: ...
    def append_assistant_message(self, text: str) -> None: ...


@dataclass
class ModelDefinition:
    name: str
    model: str  # litellm "provider/model" string
    api_key: str = ""


def default_models(keys: Keys) -> List[ModelDefinition]:
    return [
        ModelDefinition("Claude", "anthropic/claude-3-opus-20240229", keys.anthropic),
        ModelDefinition("GPT4", "openai/gpt-4-turbo-preview", keys.openai),
        ModelDefinition("Mistral Large", "mistral/mistral-large-latest", keys.mistral),
    ]


@dataclass
class ChatHistory:
    '''
    The provider-facing side of the conversation.
    Kept separately from the displayed log so it can be sent as-is.
    '''
    system: str = ""
    messages: List[dict] = field(default_factory=list)

    def to_dicts(self) -> List[dict]:
        head = [{"role": "system", "content": self.system}] if self.system else []
        return head + list(self.messages)


_DONE = object()


class FanInStream:
    '''
    Merges several producer threads into one iterator of Deltas.
    Iteration ends once every producer has called finish().
    '''
    def __init__(self, producers: int):
        self._queue: queue.Queue = queue.Queue()
        self._remaining = producers
        self.cancelled = threading.Event()

    def put(self, index: int, fragment: str):
        if fragment:
            self._queue.put(Delta(index, fragment))

    def finish(self):
        self._queue.put(_DONE)

    def cancel(self):
        self.cancelled.set()

    def __iter__(self):
        while self._remaining > 0:
            item = self._queue.get()
            if item is _DONE:
                self._remaining -= 1
                continue
            yield item


class LiteLLMBackend:
    '''
    One candidate per configured provider, streamed through litellm.

    Providers without a key are skipped, so the candidate count is the
    number of usable providers.
    '''
    def __init__(self, models: List[ModelDefinition]):
        self.models = [m for m in models if m.api_key]
        self.history = ChatHistory()

    @classmethod
    def from_keys(cls, keys: Keys) -> 'LiteLLMBackend':
        return cls(default_models(keys))

    def set_system_message(self, text: str):
        self.history.system = text

    def append_assistant_message(self, text: str):
        self.history.messages.append({"role": "assistant", "content": text})

    def create_response(self, prompt: str) -> Tuple[int, FanInStream]:
        if prompt:
            self.history.messages.append({"role": "user", "content": prompt})
        messages = self.history.to_dicts()
        stream = FanInStream(len(self.models))
        for i, m in enumerate(self.models):
            threading.Thread(target=self._stream_model, args=(i, m, messages, stream),
                             daemon=True, name=f"pickchat-{m.name}").start()
        return len(self.models), stream

    def _stream_model(self, index: int, m: ModelDefinition, messages: List[dict], stream: FanInStream):
        try:
            response = completion(
                model=m.model,
                messages=messages,
                api_key=m.api_key,
                stream=True,
            )
            for chunk in response:
                if stream.cancelled.is_set(): break
                delta = chunk.choices[0].delta if chunk.choices else None
                if delta and delta.content:
                    stream.put(index, delta.content)
        except Exception:
            logger.warning("%s (%s) stream failed", m.name, m.model, exc_info=True)
        finally:
            stream.finish()


class MockBackend:
    """Offline backend: every candidate streams the same token a few times."""
    def __init__(self, count: int = 2, tokens: int = 60, token: str = "token ", delay: float = 0.1):
        self.count = count
        self.tokens = tokens
        self.token = token
        self.delay = delay
        self.history = ChatHistory()

    def set_system_message(self, text: str):
        self.history.system = text

    def append_assistant_message(self, text: str):
        self.history.messages.append({"role": "assistant", "content": text})

    def create_response(self, prompt: str):
        if prompt:
            self.history.messages.append({"role": "user", "content": prompt})
        return self.count, self._stream()

    def _stream(self):
        for _ in range(self.tokens):
            if self.delay: time.sleep(self.delay)
            for i in range(self.count):
                yield Delta(i, self.token)


@overridable
def make_backend(keys: Keys) -> Backend:
    """Backend used by the app. Plugins override this to swap providers."""
    return LiteLLMBackend.from_keys(keys)
