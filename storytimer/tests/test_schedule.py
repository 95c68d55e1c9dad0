from __future__ import annotations

import unittest

from storytimer.schedule import (
    Interval,
    Schedule,
    ScheduleError,
    WorkoutSet,
    build_schedule,
    format_duration,
    schedule_to_payload,
    uniform_schedule,
)
from storytimer.tests.test_helpers import make_schedule


class TestSchedule(unittest.TestCase):
    def test_build_accepts_camel_and_snake_case(self) -> None:
        schedule = build_schedule(
            [
                {
                    "intervals": [
                        {"label": "Run", "duration": 30, "pauseAfter": 10},
                        {"label": "Sprint", "duration": 20, "pause_after": 0},
                    ],
                    "restAfter": 5,
                },
                {"intervals": [{"duration": 40}], "rest_after": 15},
            ]
        )

        self.assertEqual(len(schedule.sets), 2)
        self.assertEqual(schedule.sets[0].intervals[0].pause_after, 10)
        self.assertEqual(schedule.sets[0].rest_after, 5)
        self.assertEqual(schedule.sets[1].intervals[0].label, "Interval 1")
        self.assertTrue(schedule.sets[1].intervals[0].id)
        self.assertEqual(schedule.total_seconds, 120)
        self.assertEqual(schedule.runtime_seconds, 105)
        self.assertEqual(schedule.workout_seconds, 90)
        self.assertEqual(schedule.interval_count, 3)

    def test_rejects_malformed_schedules(self) -> None:
        with self.assertRaises(ScheduleError):
            build_schedule([])
        with self.assertRaises(ScheduleError):
            build_schedule([{"intervals": [], "rest_after": 5}])
        with self.assertRaises(ScheduleError):
            build_schedule([{"intervals": [{"duration": 0}]}])
        with self.assertRaises(ScheduleError):
            build_schedule([{"intervals": [{"duration": 10, "pause_after": -1}]}])
        with self.assertRaises(ScheduleError):
            build_schedule([{"intervals": [{"duration": 10}], "rest_after": -5}])
        with self.assertRaises(ScheduleError):
            build_schedule([{"intervals": [{"duration": 1.5}]}])
        with self.assertRaises(ScheduleError):
            build_schedule([{"intervals": [{"duration": True}]}])
        with self.assertRaises(ScheduleError):
            Schedule(sets=())
        with self.assertRaises(ScheduleError):
            WorkoutSet(id="x", intervals=())

    def test_schedule_error_is_value_error(self) -> None:
        self.assertTrue(issubclass(ScheduleError, ValueError))

    def test_whole_float_seconds_are_accepted(self) -> None:
        interval = Interval(id="a", label="A", duration=30.0, pause_after=5.0)
        self.assertEqual(interval.duration, 30)
        self.assertIsInstance(interval.duration, int)

    def test_position_lookups(self) -> None:
        schedule = make_schedule(([(10, 0), (10, 0)], 0), ([(5, 0)], 0), ([(1, 0), (2, 0), (3, 0)], 0))

        self.assertEqual(schedule.interval_at(2, 2).duration, 3)
        self.assertIsNone(schedule.interval_at(3, 0))
        self.assertIsNone(schedule.interval_at(1, 1))
        self.assertIsNone(schedule.interval_at(-1, 0))
        self.assertEqual(schedule.flat_index(0, 1), 1)
        self.assertEqual(schedule.flat_index(1, 0), 2)
        self.assertEqual(schedule.flat_index(2, 2), 5)

    def test_uniform_schedule(self) -> None:
        schedule = uniform_schedule(sets=2, intervals=3, work=30, pause=10, rest=60)

        self.assertEqual(len(schedule.sets), 2)
        self.assertEqual([item.label for item in schedule.sets[0].intervals], ["Interval 1", "Interval 2", "Interval 3"])
        self.assertEqual(schedule.total_seconds, 360)
        self.assertEqual(schedule.runtime_seconds, 300)
        with self.assertRaises(ScheduleError):
            uniform_schedule(sets=0, intervals=1, work=30)

    def test_payload_rebuilds_equal_schedule(self) -> None:
        schedule = make_schedule(([(30, 10), (20, 0)], 5), ([(40, 0)], 15))
        self.assertEqual(build_schedule(schedule_to_payload(schedule)), schedule)

    def test_format_duration(self) -> None:
        self.assertEqual(format_duration(125), "02 min 05 sec")
        self.assertEqual(format_duration(0), "00 min 00 sec")
        self.assertEqual(format_duration(-3), "00 min 00 sec")


if __name__ == "__main__":
    unittest.main()
