import threading
from typing import List


class CandidateIndexError(IndexError):
    """A delta named a candidate that does not exist."""


class CandidateSet:
    '''
    N reply strings for one generation, filled in by deltas.

    Written by exactly one consumer thread and read by the control loop,
    so every access goes through the lock.
    '''
    def __init__(self, n: int):
        if n < 0:
            raise ValueError(f"candidate count must be >= 0, got {n}")
        self._texts = [""] * n
        self._lock = threading.Lock()

    @classmethod
    def create(cls, n: int) -> 'CandidateSet':
        return cls(n)

    def apply_delta(self, index: int, fragment: str):
        with self._lock:
            if not 0 <= index < len(self._texts):
                raise CandidateIndexError(f"candidate index {index} out of range [0, {len(self._texts)})")
            self._texts[index] += fragment

    def get(self, index: int) -> str:
        with self._lock:
            return self._texts[index]

    def count(self) -> int:
        return len(self._texts)

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._texts)

    def render_all(self) -> str:
        return "".join(f"\nResponse {i}: {text}\n" for i, text in enumerate(self.snapshot()))
