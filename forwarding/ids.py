from __future__ import annotations
import itertools
import time

class IdGenerator:
    """
    Correlation ids of the form "<wall-clock-millis>_<counter>".
    Unique for one client instance; only roughly chronological.
    """
    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)

    def next(self) -> str:
        return f"{int(time.time() * 1000)}_{next(self._counter)}"

    __call__ = next
