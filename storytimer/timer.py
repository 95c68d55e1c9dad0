from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
import logging
from threading import RLock
from typing import Callable

from .clock import Clock, RealClock
from .driver import TickDriver
from .schedule import Schedule, generate_id

logger = logging.getLogger(__name__)

ACTIVE = "active"
PAUSE = "pause"
REST = "rest"
COMPLETE = "complete"


@dataclass(frozen=True)
class TimerState:
    session_id: str
    start_time: datetime | None
    end_time: datetime | None
    current_set_index: int
    current_interval_index: int
    is_running: bool
    is_paused: bool
    time_remaining: int
    is_in_pause: bool = False
    pause_time_remaining: int = 0
    is_in_rest: bool = False
    rest_time_remaining: int = 0

    @property
    def is_complete(self) -> bool:
        return (
            not self.is_running
            and self.time_remaining == 0
            and not self.is_in_pause
            and not self.is_in_rest
        )

    @property
    def phase(self) -> str:
        if self.is_complete:
            return COMPLETE
        if self.is_in_rest:
            return REST
        if self.is_in_pause:
            return PAUSE
        return ACTIVE


Observer = Callable[[TimerState], None]


def initial_state(schedule: Schedule, session_id: str) -> TimerState:
    first = schedule.sets[0].intervals[0]
    return TimerState(
        session_id=session_id,
        start_time=None,
        end_time=None,
        current_set_index=0,
        current_interval_index=0,
        is_running=False,
        is_paused=False,
        time_remaining=first.duration,
    )


def advance(state: TimerState, schedule: Schedule, now: datetime) -> TimerState:
    """Apply one second of schedule time and at most one phase transition."""
    if not state.is_running or state.is_paused or state.is_complete:
        return state

    if state.is_in_rest:
        remaining = max(0, state.rest_time_remaining - 1)
        if remaining == 0:
            # The next set's first interval is already staged.
            return replace(state, is_in_rest=False, rest_time_remaining=0)
        return replace(state, rest_time_remaining=remaining)

    if state.is_in_pause:
        remaining = max(0, state.pause_time_remaining - 1)
        if remaining == 0:
            return _next_position(state, schedule, now)
        return replace(state, pause_time_remaining=remaining)

    remaining = max(0, state.time_remaining - 1)
    if remaining > 0:
        return replace(state, time_remaining=remaining)

    interval = schedule.interval_at(state.current_set_index, state.current_interval_index)
    if interval is not None and interval.pause_after > 0:
        return replace(
            state,
            time_remaining=0,
            is_in_pause=True,
            pause_time_remaining=interval.pause_after,
        )
    return _next_position(state, schedule, now)


def _next_position(state: TimerState, schedule: Schedule, now: datetime) -> TimerState:
    current_set = schedule.sets[state.current_set_index]

    if state.current_interval_index < len(current_set.intervals) - 1:
        next_index = state.current_interval_index + 1
        return replace(
            state,
            current_interval_index=next_index,
            time_remaining=current_set.intervals[next_index].duration,
            is_in_pause=False,
            pause_time_remaining=0,
        )

    if state.current_set_index < len(schedule.sets) - 1:
        next_set = schedule.sets[state.current_set_index + 1]
        rest = current_set.rest_after
        return replace(
            state,
            current_set_index=state.current_set_index + 1,
            current_interval_index=0,
            time_remaining=next_set.intervals[0].duration,
            is_in_pause=False,
            pause_time_remaining=0,
            is_in_rest=rest > 0,
            rest_time_remaining=rest,
        )

    return replace(
        state,
        end_time=now,
        is_running=False,
        is_paused=False,
        time_remaining=0,
        is_in_pause=False,
        pause_time_remaining=0,
        is_in_rest=False,
        rest_time_remaining=0,
    )


class TimerEngine:
    """Owns the countdown state and publishes a new snapshot on every change.

    Without a driver the caller is responsible for calling ``tick`` once per
    second; with one, ``start`` hands ``tick`` to it and ``reset``,
    ``discard`` and completion stop it. All control calls are no-ops when
    they do not apply to the current state.
    """

    def __init__(
        self,
        schedule: Schedule | None,
        session_id: str | None = None,
        clock: Clock | None = None,
        driver: TickDriver | None = None,
    ) -> None:
        self.schedule = schedule
        self.session_id = session_id or generate_id()
        self.clock = clock or RealClock()
        self.driver = driver
        self._lock = RLock()
        self._observers: list[Observer] = []
        self._state = initial_state(schedule, self.session_id) if schedule is not None else None

    @property
    def state(self) -> TimerState | None:
        with self._lock:
            return self._state

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                self._observers = [item for item in self._observers if item is not observer]

        return unsubscribe

    def start(self) -> None:
        with self._lock:
            state = self._state
            if state is None or state.is_running or state.is_complete:
                return
            self._publish(
                replace(
                    state,
                    start_time=state.start_time or self.clock.now(),
                    is_running=True,
                    is_paused=False,
                )
            )
        logger.info("session %s started", self.session_id)
        if self.driver is not None:
            self.driver.start(self.tick)

    def pause(self) -> None:
        with self._lock:
            state = self._state
            if state is None or not state.is_running or state.is_paused:
                return
            self._publish(replace(state, is_paused=True))

    def resume(self) -> None:
        with self._lock:
            state = self._state
            if state is None or not state.is_running or not state.is_paused:
                return
            self._publish(replace(state, is_paused=False))

    def reset(self) -> None:
        with self._lock:
            if self._state is None or self.schedule is None:
                return
            self._publish(initial_state(self.schedule, self.session_id))
        if self.driver is not None:
            self.driver.stop()

    def tick(self) -> None:
        with self._lock:
            state = self._state
            if state is None or self.schedule is None:
                return
            new_state = advance(state, self.schedule, self.clock.now())
            if new_state is state:
                return
            if new_state.phase != state.phase:
                logger.debug(
                    "phase %s -> %s (set %d, interval %d)",
                    state.phase,
                    new_state.phase,
                    new_state.current_set_index,
                    new_state.current_interval_index,
                )
            self._publish(new_state)
            completed = new_state.is_complete
        if completed:
            logger.info("session %s complete", self.session_id)
            if self.driver is not None:
                self.driver.stop()

    def discard(self) -> None:
        with self._lock:
            self._state = None
            self.schedule = None
            self._observers = []
        if self.driver is not None:
            self.driver.stop()

    def _publish(self, state: TimerState) -> None:
        self._state = state
        for observer in list(self._observers):
            observer(state)
