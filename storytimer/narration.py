from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence, Union

from .schedule import Schedule
from .timer import TimerState

# Known-good, near-empty MP3 used whenever real narration is missing or failing.
SILENT_TRACK = "data:audio/mp3;base64,SUQzAwAAAAABOlRJVDIAAAAZAAADSW5zdHJ1bWVudGFsIFNvdW5kIEZYAA=="

SESSION_MODE = "session"
SET_MODE = "set"
INTERVAL_MODE = "interval"
STORY_MODES = (SESSION_MODE, SET_MODE, INTERVAL_MODE)


@dataclass(frozen=True)
class SingleTrack:
    handle: str


@dataclass(frozen=True)
class PerSetTracks:
    handles: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "handles", tuple(self.handles))


NarrationAudio = Union[SingleTrack, PerSetTracks]


@dataclass(frozen=True)
class SessionStory:
    text: str


@dataclass(frozen=True)
class SetStories:
    texts: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "texts", tuple(self.texts))


@dataclass(frozen=True)
class IntervalStories:
    texts: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "texts", tuple(self.texts))


NarrationText = Union[SessionStory, SetStories, IntervalStories]


def resolve_audio(audio: NarrationAudio | None, set_index: int) -> str:
    """Concrete handle to play for ``set_index``; silence when nothing usable exists."""
    if isinstance(audio, SingleTrack):
        return audio.handle or SILENT_TRACK
    if isinstance(audio, PerSetTracks) and audio.handles:
        index = min(max(0, set_index), len(audio.handles) - 1)
        return audio.handles[index] or SILENT_TRACK
    return SILENT_TRACK


def audio_from_value(value: str | Sequence[str] | None) -> NarrationAudio | None:
    if value is None:
        return None
    if isinstance(value, str):
        return SingleTrack(value) if value else None
    handles = tuple(str(item) for item in value)
    return PerSetTracks(handles) if handles else None


def story_from_value(mode: str, value: str | Sequence[str] | None) -> NarrationText | None:
    if value is None:
        return None
    if mode not in STORY_MODES:
        raise ValueError(f"unknown story mode: {mode}")
    if mode == SESSION_MODE:
        text = value if isinstance(value, str) else "\n\n".join(value)
        return SessionStory(text)
    texts = (value,) if isinstance(value, str) else tuple(str(item) for item in value)
    if mode == SET_MODE:
        return SetStories(texts)
    return IntervalStories(texts)


def story_to_value(story: NarrationText | None) -> Any:
    if story is None:
        return None
    if isinstance(story, SessionStory):
        return story.text
    return list(story.texts)


def audio_to_value(audio: NarrationAudio | None) -> Any:
    if audio is None:
        return None
    if isinstance(audio, SingleTrack):
        return audio.handle
    return list(audio.handles)


def text_for_position(story: NarrationText | None, schedule: Schedule, state: TimerState) -> str:
    if story is None:
        return ""
    if isinstance(story, SessionStory):
        return story.text
    if isinstance(story, SetStories):
        if not story.texts:
            return ""
        return story.texts[min(state.current_set_index, len(story.texts) - 1)]
    # Positional flattening: every interval of earlier sets comes first.
    index = schedule.flat_index(state.current_set_index, state.current_interval_index)
    return story.texts[index] if index < len(story.texts) else ""


def paragraph_index(text: str, schedule: Schedule, state: TimerState) -> int:
    """Best-effort paragraph to highlight while a set's story is narrated.

    Maps the share of the set's interval time already worked (pauses and
    rest excluded) onto the text's non-empty lines.
    """
    paragraphs = [line for line in text.splitlines() if line.strip()]
    if not paragraphs or state.is_in_rest or state.is_complete:
        return 0
    workout_set = schedule.sets[state.current_set_index]
    total = sum(item.duration for item in workout_set.intervals)
    elapsed = sum(item.duration for item in workout_set.intervals[: state.current_interval_index])
    if not state.is_in_pause:
        current = workout_set.intervals[state.current_interval_index]
        elapsed += current.duration - state.time_remaining
    else:
        elapsed += workout_set.intervals[state.current_interval_index].duration
    share = elapsed / total if total > 0 else 0.0
    return min(int(share * len(paragraphs)), len(paragraphs) - 1)
