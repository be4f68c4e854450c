# src/pipeworks/engine/clock.py
"""Clock abstraction for testable timing and scheduling.

The executor measures durations with monotonic() and stamps records with
now(); the scheduler compares now() against job due times. Production
code uses SystemClock. Tests inject MockClock to control both.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Abstract clock for durations and wall-clock timestamps."""

    def monotonic(self) -> float:
        """Return monotonic time in seconds, for elapsed time only."""
        ...

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...


class SystemClock:
    """Production clock using time.monotonic() and the system wall clock."""

    def monotonic(self) -> float:
        return time.monotonic()

    def now(self) -> datetime:
        return datetime.now(UTC)


class MockClock:
    """Controllable clock for deterministic testing.

    advance() moves monotonic and wall-clock time together.

    Example:
        clock = MockClock(now=datetime(2024, 1, 1, tzinfo=UTC))
        scheduler = Scheduler(store, executor, clock=clock)

        clock.advance(3600)
        scheduler.tick()  # jobs due within the hour run
    """

    def __init__(self, start: float = 0.0, now: datetime | None = None) -> None:
        self._current = start
        self._now = now if now is not None else datetime(2024, 1, 1, tzinfo=UTC)

    def monotonic(self) -> float:
        return self._current

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        """Move both clocks forward; negative steps raise ValueError."""
        if seconds < 0:
            raise ValueError(f"MockClock cannot advance by a negative step: {seconds}")
        self._current += seconds
        self._now += timedelta(seconds=seconds)

    def set_now(self, value: datetime) -> None:
        """Set wall-clock time. Monotonic time is left unchanged."""
        self._now = value


# Default clock for production use
DEFAULT_CLOCK: Clock = SystemClock()
