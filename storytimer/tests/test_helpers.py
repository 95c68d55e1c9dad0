from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import shutil
from typing import Iterator, Sequence
import uuid

from storytimer.schedule import Interval, Schedule, WorkoutSet
from storytimer.timer import TimerEngine, TimerState


@contextmanager
def local_tmp_dir() -> Iterator[Path]:
    base = Path(__file__).resolve().parent / "_tmp"
    base.mkdir(parents=True, exist_ok=True)
    path = base / uuid.uuid4().hex
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


def make_schedule(*sets: tuple[Sequence[tuple[int, int]], int]) -> Schedule:
    """``make_schedule(([(30, 10), (20, 0)], 5))``: (duration, pause_after) pairs plus rest_after per set."""
    return Schedule(
        sets=tuple(
            WorkoutSet(
                id=f"set-{set_pos}",
                intervals=tuple(
                    Interval(
                        id=f"set-{set_pos}-interval-{pos}",
                        label=f"Interval {pos + 1}",
                        duration=duration,
                        pause_after=pause,
                    )
                    for pos, (duration, pause) in enumerate(intervals)
                ),
                rest_after=rest,
            )
            for set_pos, (intervals, rest) in enumerate(sets)
        )
    )


def record_states(engine: TimerEngine) -> list[TimerState]:
    states: list[TimerState] = []
    engine.subscribe(states.append)
    return states


def run_ticks(engine: TimerEngine, count: int) -> None:
    for _ in range(count):
        engine.tick()
