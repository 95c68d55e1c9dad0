from __future__ import annotations

from datetime import datetime
import unittest

from storytimer.clock import FakeClock


class TestFakeClock(unittest.TestCase):
    def test_naive_start_is_treated_as_utc(self) -> None:
        clock = FakeClock(start=datetime(2026, 3, 1, 7, 30))
        self.assertIsNotNone(clock.now().tzinfo)
        self.assertEqual(clock.started_at, clock.now())

    def test_sleeps_are_recorded_and_advance_time(self) -> None:
        clock = FakeClock()
        clock.sleep(0.5)
        clock.sleep(0.5)
        clock.advance(2)
        clock.advance(-4)

        self.assertEqual(clock.sleeps, [0.5, 0.5])
        self.assertEqual(clock.sleep_calls, 2)
        self.assertEqual(clock.elapsed_seconds, 3.0)

    def test_interrupt_on_nth_sleep(self) -> None:
        clock = FakeClock(interrupt_on_sleep_call=2)
        clock.sleep(1)
        with self.assertRaises(KeyboardInterrupt):
            clock.sleep(1)

        self.assertEqual(clock.sleep_calls, 1)
        self.assertEqual(clock.elapsed_seconds, 1.0)


if __name__ == "__main__":
    unittest.main()
