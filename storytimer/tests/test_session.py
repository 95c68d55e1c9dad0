from __future__ import annotations

import unittest

from storytimer.audio import AUDIO_UNAVAILABLE
from storytimer.clock import FakeClock
from storytimer.driver import ManualTickDriver
from storytimer.narration import IntervalStories, PerSetTracks, SetStories, SingleTrack
from storytimer.session import StorySession, WorkoutSession, create_story_session
from storytimer.story import StorySettings
from storytimer.tests.test_helpers import make_schedule


class _Generator:
    def generate(self, prompt, settings):
        return ["first set", "second set"]


def _session(story=None, audio=None, mode="session", schedule=None):
    schedule = schedule or make_schedule(([(3, 1), (2, 0)], 2), ([(2, 0)], 0))
    driver = ManualTickDriver()
    session = WorkoutSession(
        StorySession(id="abc", schedule=schedule, story_mode=mode, story=story, audio=audio),
        clock=FakeClock(),
        driver=driver,
    )
    return session, driver


class TestWorkoutSession(unittest.TestCase):
    def test_snapshot_before_start(self) -> None:
        session, _ = _session(audio=SingleTrack("h"))
        snapshot = session.snapshot()

        self.assertTrue(snapshot["active"])
        self.assertEqual(snapshot["session_id"], "abc")
        self.assertEqual(snapshot["phase"], "active")
        self.assertEqual(snapshot["display"], "00:03")
        self.assertEqual(snapshot["interval"], {"id": "set-0-interval-0", "label": "Interval 1"})
        self.assertEqual(snapshot["set_count"], 2)
        self.assertFalse(snapshot["timer"]["is_running"])
        self.assertIsNone(snapshot["timer"]["start_time"])
        self.assertEqual(snapshot["audio"]["decision"], "pause")
        self.assertIsNone(snapshot["audio"]["handle"])

    def test_full_run_through_driver(self) -> None:
        session, driver = _session(audio=PerSetTracks(["a.mp3", "b.mp3"]))
        phases = []
        session.subscribe(lambda state: phases.append(state.phase))

        session.start()
        self.assertEqual(session.snapshot()["audio"]["handle"], "a.mp3")
        driver.fire(3)
        self.assertEqual(session.format_remaining(), "Pause: 00:01")
        self.assertEqual(session.snapshot()["audio"]["decision"], "pause")
        driver.fire(3)
        self.assertEqual(session.format_remaining(), "Rest: 00:02")
        driver.fire(2)
        self.assertEqual(session.snapshot()["audio"]["handle"], "b.mp3")
        driver.fire(10)

        snapshot = session.snapshot()
        self.assertEqual(snapshot["phase"], "complete")
        self.assertEqual(snapshot["session_progress"], 100.0)
        self.assertIsNone(snapshot["interval"])
        self.assertIsNotNone(snapshot["timer"]["end_time"])
        self.assertFalse(driver.active)
        self.assertEqual(phases[-1], "complete")
        self.assertEqual(phases.count("complete"), 1)

    def test_toggle(self) -> None:
        session, driver = _session()

        session.toggle()
        self.assertTrue(session.state.is_running)
        session.toggle()
        self.assertTrue(session.state.is_paused)
        driver.fire(2)
        self.assertEqual(session.state.time_remaining, 3)
        session.toggle()
        self.assertFalse(session.state.is_paused)
        driver.fire(1)
        self.assertEqual(session.state.time_remaining, 2)

    def test_reset(self) -> None:
        session, driver = _session()
        session.start()
        driver.fire(4)
        session.reset()

        self.assertFalse(session.state.is_running)
        self.assertEqual(session.session_progress(), 0.0)
        self.assertEqual(session.current_phase_progress(), 0.0)
        self.assertFalse(driver.active)

    def test_text_follows_position(self) -> None:
        session, driver = _session(story=SetStories(("one\ntwo", "three")), mode="set")
        session.start()
        self.assertEqual(session.current_text(), "one\ntwo")
        self.assertEqual(session.current_paragraph(), 0)
        driver.fire(4)
        # Three of five worked seconds in set 0 are done.
        self.assertEqual(session.current_paragraph(), 1)
        driver.fire(4)
        self.assertEqual(session.snapshot()["text"], "three")

    def test_interval_text(self) -> None:
        session, driver = _session(story=IntervalStories(("i0", "i1", "i2")), mode="interval")
        session.start()
        driver.fire(4)
        self.assertEqual(session.current_text(), "i1")
        self.assertEqual(session.current_paragraph(), 0)

    def test_audio_events(self) -> None:
        session, _ = _session(audio=SingleTrack("h"))
        session.start()

        self.assertTrue(session.snapshot()["audio"]["is_loading"])
        session.audio_ready()
        session.audio_blocked()
        self.assertEqual(session.snapshot()["audio"]["advisory"], "Tap to play")
        session.retry_audio()
        session.audio_playing()
        self.assertIsNone(session.audio_status().advisory)

        with self.assertLogs("storytimer.audio", "WARNING"):
            for _ in range(4):
                session.audio_error("decode")
        self.assertEqual(session.snapshot()["audio"]["advisory"], AUDIO_UNAVAILABLE)
        self.assertTrue(session.toggle_mute())
        self.assertTrue(session.snapshot()["audio"]["is_muted"])

    def test_discard_is_idempotent(self) -> None:
        session, driver = _session(audio=SingleTrack("h"))
        session.start()

        session.discard()
        session.discard()

        self.assertTrue(session.discarded)
        self.assertEqual(session.snapshot(), {"active": False})
        self.assertFalse(driver.active)
        self.assertTrue(session.output.released)
        self.assertEqual(session.format_remaining(), "00:00")
        self.assertEqual(session.current_text(), "")
        session.toggle()


class TestCreateStorySession(unittest.TestCase):
    def test_create_from_generator(self) -> None:
        schedule = make_schedule(([(60, 0)], 30), ([(60, 0)], 0))
        story = create_story_session(StorySettings(schedule, story_mode="set", genres=["Mystery"]), _Generator())

        self.assertEqual(story.story, SetStories(("first set", "second set")))
        self.assertIsNone(story.audio)
        self.assertEqual(story.word_count, 4)
        self.assertEqual(story.genres, ("Mystery",))
        self.assertTrue(story.id)


if __name__ == "__main__":
    unittest.main()
