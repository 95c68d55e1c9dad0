from __future__ import annotations

from .schedule import Schedule
from .timer import TimerState


def format_clock(seconds: int) -> str:
    minutes, sec = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{sec:02d}"


def format_remaining(state: TimerState | None) -> str:
    if state is None:
        return "00:00"
    if state.is_in_rest:
        return f"Rest: {format_clock(state.rest_time_remaining)}"
    if state.is_in_pause:
        return f"Pause: {format_clock(state.pause_time_remaining)}"
    return format_clock(state.time_remaining)


def phase_duration(state: TimerState, schedule: Schedule) -> int:
    """Configured length of whichever phase ``state`` is in."""
    if state.is_in_rest:
        # Rest belongs to the set that just finished.
        previous = max(0, state.current_set_index - 1)
        return schedule.sets[previous].rest_after if previous < len(schedule.sets) else 0
    interval = schedule.interval_at(state.current_set_index, state.current_interval_index)
    if interval is None:
        return 0
    if state.is_in_pause:
        return interval.pause_after
    return interval.duration


def phase_remaining(state: TimerState) -> int:
    if state.is_in_rest:
        return state.rest_time_remaining
    if state.is_in_pause:
        return state.pause_time_remaining
    return state.time_remaining


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def current_phase_progress(state: TimerState | None, schedule: Schedule | None) -> float:
    if state is None or schedule is None:
        return 0.0
    total = phase_duration(state, schedule)
    if total <= 0:
        return 0.0
    return _clamp((total - phase_remaining(state)) / total * 100)


def elapsed_seconds(state: TimerState, schedule: Schedule) -> int:
    elapsed = 0
    for set_index, workout_set in enumerate(schedule.sets):
        for interval_index, interval in enumerate(workout_set.intervals):
            position = (set_index, interval_index)
            current = (state.current_set_index, state.current_interval_index)
            if position < current:
                elapsed += interval.duration + interval.pause_after
            elif position == current:
                if state.is_in_pause:
                    elapsed += interval.duration + (interval.pause_after - state.pause_time_remaining)
                else:
                    elapsed += interval.duration - state.time_remaining

        if set_index < state.current_set_index - 1:
            elapsed += workout_set.rest_after
        elif set_index == state.current_set_index - 1:
            if state.is_in_rest:
                elapsed += workout_set.rest_after - state.rest_time_remaining
            else:
                elapsed += workout_set.rest_after
    return max(0, elapsed)


def session_progress(state: TimerState | None, schedule: Schedule | None) -> float:
    if state is None or schedule is None:
        return 0.0
    if state.is_complete:
        return 100.0
    total = schedule.total_seconds
    if total <= 0:
        return 0.0
    return _clamp(elapsed_seconds(state, schedule) / total * 100)
