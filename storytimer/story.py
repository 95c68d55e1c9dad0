from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Protocol, Sequence

from .narration import (
    INTERVAL_MODE,
    SESSION_MODE,
    SET_MODE,
    STORY_MODES,
    IntervalStories,
    NarrationAudio,
    NarrationText,
    PerSetTracks,
    SessionStory,
    SetStories,
    SingleTrack,
)
from .schedule import Schedule

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 140

GENRES = (
    "Adventure",
    "Fantasy",
    "Science Fiction",
    "Mystery",
    "Horror",
    "Romance",
    "Historical",
    "Motivational",
    "Comedy",
    "Thriller",
)

LANGUAGES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
}

_LANGUAGE_CODES = {
    "en": "en-US",
    "es": "es-ES",
    "fr": "fr-FR",
    "de": "de-DE",
    "it": "it-IT",
}

_VOICES = {
    "en": "en-US-Wavenet-D",
    "es": "es-ES-Wavenet-C",
    "fr": "fr-FR-Wavenet-D",
    "de": "de-DE-Wavenet-C",
    "it": "it-IT-Wavenet-B",
}


class StoryGenerationError(RuntimeError):
    pass


@dataclass(frozen=True)
class StorySettings:
    schedule: Schedule
    story_mode: str = SESSION_MODE
    language: str = "en"
    genres: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.story_mode not in STORY_MODES:
            raise ValueError(f"unknown story mode: {self.story_mode}")
        object.__setattr__(self, "genres", tuple(self.genres))


class StoryGenerator(Protocol):
    def generate(self, prompt: str, settings: StorySettings) -> str | Sequence[str]:
        ...


class SpeechSynthesizer(Protocol):
    def synthesize(self, text: str, language_code: str, voice: str) -> str:
        """Return an opaque, playable audio handle for ``text``."""
        ...


def count_words(text: str) -> int:
    return len(text.split())


def target_word_count(schedule: Schedule) -> int:
    return round(schedule.workout_seconds / 60 * WORDS_PER_MINUTE)


def language_code(language: str) -> str:
    return _LANGUAGE_CODES.get(language, "en-US")


def voice_for_language(code: str) -> str:
    return _VOICES.get(code.split("-")[0], "en-US-Wavenet-D")


def segment_count(settings: StorySettings) -> int:
    if settings.story_mode == SET_MODE:
        return len(settings.schedule.sets)
    if settings.story_mode == INTERVAL_MODE:
        return settings.schedule.interval_count
    return 1


def build_story_prompt(settings: StorySettings, word_count: int) -> str:
    prompt = "Write a captivating short story"
    genres = [item.lower() for item in settings.genres]
    if len(genres) == 1:
        prompt += f" in the {genres[0]} genre"
    elif len(genres) > 1:
        prompt += f" that combines elements of {', '.join(genres[:-1])} and {genres[-1]}"
    if settings.story_mode != SESSION_MODE:
        prompt += f" with exactly {segment_count(settings)} chapters"
    prompt += f". The total word count should be approximately {word_count} words."
    language = LANGUAGES.get(settings.language)
    if language and settings.language != "en":
        prompt += f" Write it in {language}."
    prompt += " The story should be engaging, immersive, and suitable for listening to during a workout."
    return prompt


def _segments(raw: str | Sequence[str], expected: int) -> list[str]:
    if isinstance(raw, str):
        pieces = [raw] if expected == 1 else [part for part in raw.split("\n\n") if part.strip()]
    else:
        pieces = [str(part) for part in raw]
    if len(pieces) != expected:
        raise StoryGenerationError(f"expected {expected} story segments, got {len(pieces)}")
    return pieces


def _story_value(settings: StorySettings, segments: list[str]) -> NarrationText:
    if settings.story_mode == SET_MODE:
        return SetStories(tuple(segments))
    if settings.story_mode == INTERVAL_MODE:
        return IntervalStories(tuple(segments))
    return SessionStory(segments[0])


def _track_texts(settings: StorySettings, segments: list[str]) -> list[str]:
    if settings.story_mode != INTERVAL_MODE:
        return segments
    # Interval chapters are narrated as one track per set.
    texts: list[str] = []
    offset = 0
    for workout_set in settings.schedule.sets:
        count = len(workout_set.intervals)
        texts.append("\n\n".join(segments[offset : offset + count]))
        offset += count
    return texts


def prepare_narration(
    settings: StorySettings,
    generator: StoryGenerator,
    synthesizer: SpeechSynthesizer | None = None,
) -> tuple[NarrationText, NarrationAudio | None, int]:
    word_count = target_word_count(settings.schedule)
    prompt = build_story_prompt(settings, word_count)
    try:
        raw = generator.generate(prompt, settings)
    except StoryGenerationError:
        raise
    except Exception as exc:
        raise StoryGenerationError(f"story generation failed: {exc}") from exc

    segments = _segments(raw, segment_count(settings))
    story = _story_value(settings, segments)
    words = sum(count_words(item) for item in segments)

    if synthesizer is None:
        return story, None, words

    code = language_code(settings.language)
    voice = voice_for_language(code)
    try:
        handles = [synthesizer.synthesize(text, code, voice) for text in _track_texts(settings, segments)]
    except Exception as exc:
        logger.warning("speech synthesis failed, continuing without narration audio: %s", exc)
        return story, None, words

    if settings.story_mode == SESSION_MODE:
        return story, SingleTrack(handles[0]), words
    return story, PerSetTracks(tuple(handles)), words
