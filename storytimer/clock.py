from __future__ import annotations

from datetime import datetime, timedelta, timezone
import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class RealClock:
    def now(self) -> datetime:
        return datetime.now().astimezone()

    def sleep(self, seconds: float) -> None:
        time.sleep(max(0.0, seconds))


class FakeClock:
    """Deterministic clock for schedule runs.

    Sleeping only advances the fake wall time, and every sleep is recorded so
    tests can compare wall time spent against schedule seconds ticked.
    ``interrupt_on_sleep_call`` raises KeyboardInterrupt on the n-th sleep,
    which lets terminal runs be stopped mid-session.
    """

    def __init__(
        self,
        start: datetime | None = None,
        interrupt_on_sleep_call: int | None = None,
    ) -> None:
        base = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        if base.tzinfo is None:
            base = base.replace(tzinfo=timezone.utc)
        self.started_at = base
        self._current = base
        self._interrupt_on_sleep_call = interrupt_on_sleep_call
        self.sleeps: list[float] = []

    @property
    def sleep_calls(self) -> int:
        return len(self.sleeps)

    @property
    def elapsed_seconds(self) -> float:
        return (self._current - self.started_at).total_seconds()

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float) -> None:
        self._current += timedelta(seconds=max(0.0, seconds))

    def sleep(self, seconds: float) -> None:
        if (
            self._interrupt_on_sleep_call is not None
            and self.sleep_calls + 1 >= self._interrupt_on_sleep_call
        ):
            raise KeyboardInterrupt
        self.sleeps.append(seconds)
        self.advance(seconds)
