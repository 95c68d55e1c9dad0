from __future__ import annotations

from dataclasses import dataclass
import sys
from typing import Callable, TextIO

from .clock import Clock
from .schedule import format_duration
from .session import WorkoutSession
from .timer import COMPLETE, TimerState


@dataclass(frozen=True)
class RunResult:
    interrupted: bool
    ticks: int
    completed: bool


ProgressCallback = Callable[[str, dict[str, object]], None]


class SessionRunner:
    """Runs a session in the calling thread, one tick per ``tick_seconds``."""

    def __init__(
        self,
        clock: Clock,
        stream: TextIO | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.clock = clock
        self.stream = stream or sys.stdout
        self.progress_callback = progress_callback
        self._stop_requested = False
        self._last_phase: str | None = None

    def request_stop(self) -> None:
        self._stop_requested = True

    def run(self, session: WorkoutSession, tick_seconds: float = 1.0) -> RunResult:
        self._stop_requested = False
        schedule = session.schedule
        self.stream.write(
            f"Starting session: {len(schedule.sets)} set(s), {schedule.interval_count} interval(s), "
            f"{format_duration(schedule.runtime_seconds)}\n"
        )
        self.stream.flush()

        unsubscribe = session.subscribe(self._on_state)
        self._last_phase = None
        ticks = 0
        interrupted = False
        session.start()
        try:
            while True:
                state = session.state
                if state is None or state.is_complete:
                    break
                if self._stop_requested:
                    interrupted = True
                    break
                self._render(session)
                self._emit("tick", remaining=session.format_remaining(), ticks=ticks)
                try:
                    self.clock.sleep(tick_seconds)
                except KeyboardInterrupt:
                    interrupted = True
                    break
                session.engine.tick()
                ticks += 1
        finally:
            unsubscribe()

        self._clear_line()
        state = session.state
        completed = state is not None and state.is_complete
        if interrupted:
            session.pause()
            self.stream.write(f"Session stopped at {session.format_remaining()} ({session.session_progress():.0f}%).\n")
        else:
            self.stream.write(f"Session complete after {format_duration(ticks)}.\n")
        self.stream.flush()
        self._emit("run_end", interrupted=interrupted, ticks=ticks, completed=completed)
        return RunResult(interrupted=interrupted, ticks=ticks, completed=completed)

    def _on_state(self, state: TimerState) -> None:
        phase = state.phase
        if phase == self._last_phase:
            return
        self._last_phase = phase
        self._emit(
            "phase",
            phase=phase,
            set_index=state.current_set_index,
            interval_index=state.current_interval_index,
        )
        if phase == COMPLETE:
            self.stream.write("\a")

    def _render(self, session: WorkoutSession) -> None:
        state = session.state
        interval = session.current_interval()
        if state is None or interval is None:
            return
        label = f"Set {state.current_set_index + 1}/{len(session.schedule.sets)} {interval.label}"
        self.stream.write(f"\r{label} {session.format_remaining()}")
        self.stream.flush()

    def _clear_line(self) -> None:
        self.stream.write("\r" + (" " * 80) + "\r")
        self.stream.flush()

    def _emit(self, event: str, **payload: object) -> None:
        if self.progress_callback is None:
            return
        self.progress_callback(event, payload)
