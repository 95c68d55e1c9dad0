from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from .audio import AudioOutput, AudioStatus, AudioSyncPolicy, HeadlessAudioOutput
from .clock import Clock
from .driver import TickDriver
from .narration import (
    SESSION_MODE,
    NarrationAudio,
    NarrationText,
    SetStories,
    paragraph_index,
    text_for_position,
)
from .progress import current_phase_progress, format_remaining, session_progress
from .schedule import Interval, Schedule, generate_id
from .story import SpeechSynthesizer, StoryGenerator, StorySettings, prepare_narration
from .timer import TimerEngine, TimerState


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class StorySession:
    id: str
    schedule: Schedule
    story_mode: str = SESSION_MODE
    language: str = "en"
    genres: tuple[str, ...] = ()
    story: NarrationText | None = None
    audio: NarrationAudio | None = None
    word_count: int = 0
    created_at: datetime = field(default_factory=_now)


def create_story_session(
    settings: StorySettings,
    generator: StoryGenerator,
    synthesizer: SpeechSynthesizer | None = None,
) -> StorySession:
    story, audio, words = prepare_narration(settings, generator, synthesizer)
    return StorySession(
        id=generate_id(),
        schedule=settings.schedule,
        story_mode=settings.story_mode,
        language=settings.language,
        genres=settings.genres,
        story=story,
        audio=audio,
        word_count=words,
    )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class WorkoutSession:
    """Control and query surface for one running story session.

    The audio policy is subscribed to the engine before anyone else, so every
    observer added through ``subscribe`` sees audio status that already
    reflects the snapshot it receives.
    """

    def __init__(
        self,
        story: StorySession,
        clock: Clock | None = None,
        driver: TickDriver | None = None,
        output: AudioOutput | None = None,
        max_retries: int = 3,
    ) -> None:
        self.story = story
        self.engine = TimerEngine(story.schedule, session_id=story.id, clock=clock, driver=driver)
        self.output = output if output is not None else HeadlessAudioOutput()
        self.audio_policy = AudioSyncPolicy(self.output, story.audio, max_retries=max_retries)
        self._unsubscribe = self.engine.subscribe(self.audio_policy.observe)
        self.audio_policy.observe(self.engine.state)
        self._discarded = False

    @property
    def schedule(self) -> Schedule:
        return self.story.schedule

    @property
    def state(self) -> TimerState | None:
        return self.engine.state

    @property
    def discarded(self) -> bool:
        return self._discarded

    def subscribe(self, observer: Callable[[TimerState], None]) -> Callable[[], None]:
        return self.engine.subscribe(observer)

    def start(self) -> None:
        self.engine.start()

    def pause(self) -> None:
        self.engine.pause()

    def resume(self) -> None:
        self.engine.resume()

    def reset(self) -> None:
        self.engine.reset()

    def toggle(self) -> None:
        state = self.engine.state
        if state is None:
            return
        if state.is_running and not state.is_paused:
            self.engine.pause()
        elif state.is_running:
            self.engine.resume()
        else:
            self.engine.start()

    def discard(self) -> None:
        if self._discarded:
            return
        self._discarded = True
        self._unsubscribe()
        self.engine.discard()
        self.audio_policy.release()

    def toggle_mute(self) -> bool:
        return self.audio_policy.toggle_mute()

    def retry_audio(self) -> None:
        self.audio_policy.retry()

    def audio_ready(self) -> None:
        self.audio_policy.on_ready()

    def audio_playing(self) -> None:
        self.audio_policy.on_playing()

    def audio_error(self, message: str = "") -> None:
        self.audio_policy.on_error(message)

    def audio_blocked(self) -> None:
        self.audio_policy.on_autoplay_blocked()

    def audio_status(self) -> AudioStatus:
        return self.audio_policy.status()

    def format_remaining(self) -> str:
        return format_remaining(self.engine.state)

    def current_phase_progress(self) -> float:
        return current_phase_progress(self.engine.state, self.engine.schedule)

    def session_progress(self) -> float:
        return session_progress(self.engine.state, self.engine.schedule)

    def current_interval(self) -> Interval | None:
        state = self.engine.state
        if state is None or state.is_complete:
            return None
        return self.schedule.interval_at(state.current_set_index, state.current_interval_index)

    def current_text(self) -> str:
        state = self.engine.state
        if state is None:
            return ""
        return text_for_position(self.story.story, self.schedule, state)

    def current_paragraph(self) -> int:
        state = self.engine.state
        if state is None or not isinstance(self.story.story, SetStories):
            return 0
        return paragraph_index(self.current_text(), self.schedule, state)

    def snapshot(self) -> dict[str, Any]:
        state = self.engine.state
        if state is None:
            return {"active": False}
        interval = self.current_interval()
        audio = self.audio_status()
        return {
            "active": True,
            "session_id": state.session_id,
            "phase": state.phase,
            "timer": {
                "start_time": _iso(state.start_time),
                "end_time": _iso(state.end_time),
                "current_set_index": state.current_set_index,
                "current_interval_index": state.current_interval_index,
                "is_running": state.is_running,
                "is_paused": state.is_paused,
                "time_remaining": state.time_remaining,
                "is_in_pause": state.is_in_pause,
                "pause_time_remaining": state.pause_time_remaining,
                "is_in_rest": state.is_in_rest,
                "rest_time_remaining": state.rest_time_remaining,
            },
            "display": format_remaining(state),
            "phase_progress": current_phase_progress(state, self.schedule),
            "session_progress": session_progress(state, self.schedule),
            "interval": None if interval is None else {"id": interval.id, "label": interval.label},
            "set_count": len(self.schedule.sets),
            "story_mode": self.story.story_mode,
            "text": self.current_text(),
            "paragraph": self.current_paragraph(),
            "audio": {
                "decision": audio.decision,
                "handle": audio.loaded,
                "is_loading": audio.is_loading,
                "is_muted": audio.is_muted,
                "error_count": audio.error_count,
                "unavailable": audio.unavailable,
                "needs_tap": audio.needs_tap,
                "advisory": audio.advisory,
            },
        }
