import threading
import time

import pytest

from pickchat import hooks
from pickchat.streaming import Delta
from pickchat.turns import TurnController


class ScriptedBackend:
    '''
    Backend double. Each create_response() pops the next (count, deltas)
    script; `gate` (if given) holds the stream open until set.
    '''
    def __init__(self, *scripts, gate: threading.Event = None):
        self.scripts = list(scripts)
        self.gate = gate
        self.system_messages = []
        self.prompts = []
        self.assistant_messages = []
        self.cancelled = 0

    def set_system_message(self, text):
        self.system_messages.append(text)

    def append_assistant_message(self, text):
        self.assistant_messages.append(text)

    def create_response(self, prompt):
        self.prompts.append(prompt)
        count, deltas = self.scripts.pop(0) if self.scripts else (2, [])
        return count, self._stream(deltas)

    def _stream(self, deltas):
        for index, fragment in deltas:
            yield Delta(index, fragment)
        if self.gate is not None:
            self.gate.wait(5)


def wait_until(cond, timeout=2.0):
    end = time.monotonic() + timeout
    while time.monotonic() < end:
        if cond(): return True
        time.sleep(0.005)
    return cond()


def pump(ctl: TurnController, phase, timeout=2.0):
    """Ticks the controller until it reaches `phase`."""
    end = time.monotonic() + timeout
    while time.monotonic() < end:
        if ctl.phase is phase: return True
        ctl.tick()
        time.sleep(0.005)
    return ctl.phase is phase


@pytest.fixture
def restore_hooks():
    overrides, overridden = dict(hooks.OVERRIDES), set(hooks._OVERRIDDEN)
    yield
    hooks.OVERRIDES.clear(); hooks.OVERRIDES.update(overrides)
    hooks._OVERRIDDEN.clear(); hooks._OVERRIDDEN.update(overridden)
