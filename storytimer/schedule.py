from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping
import uuid


class ScheduleError(ValueError):
    """Raised when a workout schedule violates the set/interval invariants."""


def generate_id() -> str:
    return uuid.uuid4().hex[:12]


def _seconds(value: Any, field_name: str, minimum: int) -> int:
    if isinstance(value, bool):
        raise ScheduleError(f"{field_name} must be a number of seconds, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ScheduleError(f"{field_name} must be whole seconds, got {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise ScheduleError(f"{field_name} must be a number of seconds, got {value!r}")
    if value < minimum:
        raise ScheduleError(f"{field_name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Interval:
    id: str
    label: str
    duration: int
    pause_after: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "duration", _seconds(self.duration, "duration", 1))
        object.__setattr__(self, "pause_after", _seconds(self.pause_after, "pause_after", 0))


@dataclass(frozen=True)
class WorkoutSet:
    id: str
    intervals: tuple[Interval, ...]
    rest_after: int = 0

    def __post_init__(self) -> None:
        intervals = tuple(self.intervals)
        if not intervals:
            raise ScheduleError(f"set {self.id!r} has no intervals")
        object.__setattr__(self, "intervals", intervals)
        object.__setattr__(self, "rest_after", _seconds(self.rest_after, "rest_after", 0))

    @property
    def seconds(self) -> int:
        return sum(item.duration + item.pause_after for item in self.intervals) + self.rest_after


@dataclass(frozen=True)
class Schedule:
    """Static timing of a whole session: ordered sets of ordered intervals."""

    sets: tuple[WorkoutSet, ...]

    def __post_init__(self) -> None:
        sets = tuple(self.sets)
        if not sets:
            raise ScheduleError("schedule has no sets")
        object.__setattr__(self, "sets", sets)

    @property
    def total_seconds(self) -> int:
        return sum(item.seconds for item in self.sets)

    @property
    def runtime_seconds(self) -> int:
        # No rest follows the final set.
        return self.total_seconds - self.sets[-1].rest_after

    @property
    def workout_seconds(self) -> int:
        return sum(interval.duration for item in self.sets for interval in item.intervals)

    @property
    def interval_count(self) -> int:
        return sum(len(item.intervals) for item in self.sets)

    def interval_at(self, set_index: int, interval_index: int) -> Interval | None:
        if not 0 <= set_index < len(self.sets):
            return None
        intervals = self.sets[set_index].intervals
        if not 0 <= interval_index < len(intervals):
            return None
        return intervals[interval_index]

    def flat_index(self, set_index: int, interval_index: int) -> int:
        preceding = sum(len(item.intervals) for item in self.sets[:set_index])
        return preceding + interval_index


def _pick(item: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in item:
            return item[name]
    return default


def build_schedule(payload: Iterable[Mapping[str, Any]]) -> Schedule:
    """Parse plain mappings (JSON bodies, schedule files) into a Schedule.

    Both snake_case (``pause_after``/``rest_after``) and camelCase
    (``pauseAfter``/``restAfter``) keys are accepted; ids are generated
    when absent.
    """
    sets: list[WorkoutSet] = []
    for set_pos, raw_set in enumerate(payload, start=1):
        if not isinstance(raw_set, Mapping):
            raise ScheduleError(f"set {set_pos} must be an object")
        raw_intervals = _pick(raw_set, "intervals", default=[])
        if not isinstance(raw_intervals, (list, tuple)):
            raise ScheduleError(f"set {set_pos} intervals must be a list")
        intervals: list[Interval] = []
        for interval_pos, raw in enumerate(raw_intervals, start=1):
            if not isinstance(raw, Mapping):
                raise ScheduleError(f"set {set_pos} interval {interval_pos} must be an object")
            intervals.append(
                Interval(
                    id=str(_pick(raw, "id", default="") or generate_id()),
                    label=str(_pick(raw, "label", default="") or f"Interval {interval_pos}"),
                    duration=_pick(raw, "duration", default=0),
                    pause_after=_pick(raw, "pause_after", "pauseAfter", default=0),
                )
            )
        sets.append(
            WorkoutSet(
                id=str(_pick(raw_set, "id", default="") or generate_id()),
                intervals=tuple(intervals),
                rest_after=_pick(raw_set, "rest_after", "restAfter", default=0),
            )
        )
    return Schedule(sets=tuple(sets))


def uniform_schedule(sets: int, intervals: int, work: int, pause: int = 0, rest: int = 0) -> Schedule:
    if sets < 1:
        raise ScheduleError("at least one set is required")
    if intervals < 1:
        raise ScheduleError("at least one interval per set is required")
    return Schedule(
        sets=tuple(
            WorkoutSet(
                id=generate_id(),
                intervals=tuple(
                    Interval(id=generate_id(), label=f"Interval {pos}", duration=work, pause_after=pause)
                    for pos in range(1, intervals + 1)
                ),
                rest_after=rest,
            )
            for _ in range(sets)
        )
    )


def schedule_to_payload(schedule: Schedule) -> list[dict[str, Any]]:
    return [
        {
            "id": item.id,
            "rest_after": item.rest_after,
            "intervals": [
                {
                    "id": interval.id,
                    "label": interval.label,
                    "duration": interval.duration,
                    "pause_after": interval.pause_after,
                }
                for interval in item.intervals
            ],
        }
        for item in schedule.sets
    ]


def format_duration(seconds: int) -> str:
    minutes, sec = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d} min {sec:02d} sec"
