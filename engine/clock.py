"""
Injected time sources. The engine never reads the wall clock directly.
"""
from __future__ import annotations

import time


class SystemClock:
    """Integer unix seconds."""

    def __call__(self) -> int:
        return int(time.time())


class ManualClock:
    """Deterministic clock for tests, demos and the REPL."""

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"start must be >= 0, got {start}")
        self._now = int(start)

    def __call__(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("time cannot move backwards")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"time cannot move backwards ({timestamp} < {self._now})")
        self._now = int(timestamp)
