from __future__ import annotations

import logging
from threading import Event, Lock, Thread, current_thread
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TickDriver(Protocol):
    """Recurring once-per-second callback that the engine starts and stops."""

    @property
    def active(self) -> bool:
        ...

    def start(self, callback: TickCallback) -> None:
        ...

    def stop(self) -> None:
        ...


class ThreadTickDriver:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread.

    The wait restarts after each callback returns, so a slow tick delays the
    next one instead of producing a catch-up burst.
    """

    def __init__(self, interval: float = 1.0) -> None:
        if interval <= 0:
            raise ValueError("tick interval must be positive")
        self.interval = float(interval)
        self._lock = Lock()
        self._thread: Thread | None = None
        self._stop_event = Event()

    @property
    def active(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def start(self, callback: TickCallback) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop_event = Event()
            self._thread = Thread(
                target=self._loop,
                args=(callback, self._stop_event),
                name="storytimer-tick",
                daemon=True,
            )
            self._thread.start()

    def stop(self) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
            self._stop_event.set()
        if thread is not None and thread is not current_thread():
            thread.join(timeout=self.interval * 2)

    def _loop(self, callback: TickCallback, stop_event: Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                callback()
            except Exception:
                logger.exception("tick callback failed")


class ManualTickDriver:
    """Test driver: ticks happen only when ``fire`` is called."""

    def __init__(self) -> None:
        self._callback: TickCallback | None = None
        self.starts = 0
        self.stops = 0

    @property
    def active(self) -> bool:
        return self._callback is not None

    def start(self, callback: TickCallback) -> None:
        if self._callback is not None:
            return
        self._callback = callback
        self.starts += 1

    def stop(self) -> None:
        if self._callback is None:
            return
        self._callback = None
        self.stops += 1

    def fire(self, times: int = 1) -> int:
        fired = 0
        for _ in range(times):
            if self._callback is None:
                break
            self._callback()
            fired += 1
        return fired
