from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import RLock
from typing import Callable, Protocol

from .narration import SILENT_TRACK, NarrationAudio, resolve_audio
from .timer import TimerState

logger = logging.getLogger(__name__)

PLAY = "play"
PAUSE = "pause"

AUDIO_UNAVAILABLE = "Audio unavailable"
TAP_TO_PLAY = "Tap to play"


def decide(state: TimerState | None) -> str:
    if (
        state is not None
        and state.is_running
        and not state.is_paused
        and not state.is_in_pause
        and not state.is_in_rest
    ):
        return PLAY
    return PAUSE


class AudioOutput(Protocol):
    """Platform audio element. ``load`` and ``play`` report their outcome later
    through the policy's ``on_ready``/``on_playing``/``on_error``/``on_autoplay_blocked``."""

    def load(self, handle: str) -> None:
        ...

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def rewind(self) -> None:
        ...

    def set_muted(self, muted: bool) -> None:
        ...

    def release(self) -> None:
        ...


class HeadlessAudioOutput:
    """Keeps the commanded playback state for a remote player to mirror."""

    def __init__(self) -> None:
        self.handle: str | None = None
        self.playing = False
        self.muted = False
        self.released = False
        self.commands: list[tuple[str, object]] = []

    def load(self, handle: str) -> None:
        self.handle = handle
        self.playing = False
        self.commands.append(("load", handle))

    def play(self) -> None:
        self.playing = True
        self.commands.append(("play", None))

    def pause(self) -> None:
        self.playing = False
        self.commands.append(("pause", None))

    def rewind(self) -> None:
        self.commands.append(("rewind", None))

    def set_muted(self, muted: bool) -> None:
        self.muted = muted
        self.commands.append(("mute", muted))

    def release(self) -> None:
        self.playing = False
        self.handle = None
        self.released = True
        self.commands.append(("release", None))


@dataclass(frozen=True)
class AudioStatus:
    decision: str
    source: str | None
    loaded: str | None
    is_loading: bool
    is_muted: bool
    error_count: int
    unavailable: bool
    needs_tap: bool
    last_error: str | None = None

    @property
    def advisory(self) -> str | None:
        if self.unavailable:
            return AUDIO_UNAVAILABLE
        if self.needs_tap:
            return TAP_TO_PLAY
        return None


class AudioSyncPolicy:
    """Drives narration playback from timer snapshots.

    Subscribe ``observe`` to the engine; it issues play/pause/load commands on
    the output in snapshot order. Playback failures are absorbed here: up to
    ``max_retries`` silent-placeholder substitutions per narration handle,
    then a non-blocking "audio unavailable" state. Nothing raised by the
    output escapes to the caller.
    """

    def __init__(
        self,
        output: AudioOutput,
        audio: NarrationAudio | None,
        max_retries: int = 3,
        silent_handle: str = SILENT_TRACK,
    ) -> None:
        self.output = output
        self.audio = audio
        self.max_retries = max(0, int(max_retries))
        self.silent_handle = silent_handle
        self._lock = RLock()
        self._decision: str | None = None
        self._was_running = False
        self._source: str | None = None
        self._loaded: str | None = None
        self._loading = False
        self._error_count = 0
        self._unavailable = False
        self._needs_tap = False
        self._muted = False
        self._released = False
        self._last_error: str | None = None

    def observe(self, state: TimerState | None) -> None:
        with self._lock:
            if self._released:
                return
            previous = self._decision
            decision = decide(state)
            self._decision = decision

            if decision == PAUSE:
                if previous != PAUSE:
                    self._command(self.output.pause)
                running = state is not None and state.is_running
                if self._was_running and not running:
                    # Reset or completion: next start plays from the top.
                    self._command(self.output.rewind)
                self._was_running = running
                return

            self._was_running = True
            reloaded = self._sync_source(state.current_set_index if state is not None else 0)
            if self._unavailable:
                return
            if previous != PLAY or reloaded:
                self._report(self._play())

    def on_ready(self) -> None:
        with self._lock:
            self._loading = False

    def on_playing(self) -> None:
        with self._lock:
            self._loading = False
            self._needs_tap = False

    def on_error(self, message: str = "") -> None:
        with self._lock:
            self._handle_error(message or "unknown error")

    def on_autoplay_blocked(self) -> None:
        with self._lock:
            if self._released:
                return
            logger.info("autoplay blocked; waiting for user gesture")
            self._needs_tap = True

    def retry(self) -> None:
        with self._lock:
            if self._released:
                return
            self._needs_tap = False
            if self._decision == PLAY and not self._unavailable:
                self._report(self._play())

    def set_muted(self, muted: bool) -> bool:
        with self._lock:
            if self._released:
                return self._muted
            self._muted = bool(muted)
            self._command(self.output.set_muted, self._muted)
            return self._muted

    def toggle_mute(self) -> bool:
        with self._lock:
            return self.set_muted(not self._muted)

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
            self._command(self.output.pause)
            self._command(self.output.release)

    def status(self) -> AudioStatus:
        with self._lock:
            return AudioStatus(
                decision=self._decision or PAUSE,
                source=self._source,
                loaded=self._loaded,
                is_loading=self._loading,
                is_muted=self._muted,
                error_count=self._error_count,
                unavailable=self._unavailable,
                needs_tap=self._needs_tap,
                last_error=self._last_error,
            )

    def _sync_source(self, set_index: int) -> bool:
        handle = resolve_audio(self.audio, set_index)
        if handle == self._source:
            return False
        # A genuinely new track gets a fresh retry budget.
        self._source = handle
        self._error_count = 0
        self._unavailable = False
        self._last_error = None
        self._report(self._load(handle))
        return True

    def _load(self, handle: str) -> str | None:
        """Ask the output to load ``handle``; returns the failure message, if any."""
        self._loaded = handle
        self._loading = True
        try:
            self.output.load(handle)
        except Exception as exc:
            return f"load failed: {exc}"
        return None

    def _play(self) -> str | None:
        try:
            self.output.play()
        except Exception as exc:
            return f"play failed: {exc}"
        return None

    def _report(self, failure: str | None) -> None:
        if failure is not None:
            self._handle_error(failure)

    def _handle_error(self, message: str) -> None:
        if self._released or self._unavailable:
            return
        failure: str | None = message
        # Substitutions that fail synchronously loop here instead of recursing.
        while failure is not None:
            self._last_error = failure
            if self._error_count >= self.max_retries:
                self._unavailable = True
                self._loading = False
                logger.error(
                    "audio unavailable for %s after %d substitutions: %s",
                    self._source,
                    self._error_count,
                    failure,
                )
                self._command(self.output.pause)
                return
            self._error_count += 1
            logger.warning(
                "audio error %d/%d for %s: %s; substituting silence",
                self._error_count,
                self.max_retries,
                self._source,
                failure,
            )
            failure = self._load(self.silent_handle)
            if failure is None and self._decision == PLAY:
                failure = self._play()

    def _command(self, command: Callable[..., None], *args: object) -> None:
        try:
            command(*args)
        except Exception:
            logger.exception("audio command %s failed", getattr(command, "__name__", command))
