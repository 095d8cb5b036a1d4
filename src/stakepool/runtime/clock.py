from __future__ import annotations

import threading
import time
from typing import Protocol

from stakepool.ledger.constants import DAY_SECONDS


class Clock(Protocol):
    def now(self) -> int:
        """Unix seconds; must never go backwards."""
        ...


class SystemClock:
    """Wall clock, clamped so a host clock step backwards is never observed."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last = 0

    def now(self) -> int:
        t = int(time.time())
        with self._lock:
            if t < self._last:
                t = self._last
            self._last = t
        return t


class ManualClock:
    """Settable clock for tests and simulations."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        s = int(seconds)
        if s < 0:
            raise ValueError(f"clock cannot move backwards; got: {seconds}")
        self._now += s
        return self._now

    def advance_days(self, days: int) -> int:
        return self.advance(int(days) * DAY_SECONDS)

    def set(self, ts: int) -> None:
        t = int(ts)
        if t < self._now:
            raise ValueError(f"clock cannot move backwards: {t} < {self._now}")
        self._now = t


__all__ = ["Clock", "SystemClock", "ManualClock"]
