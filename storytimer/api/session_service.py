from __future__ import annotations

import logging
import queue
from threading import Lock
from typing import Any, Callable

from ..clock import Clock
from ..config import Settings
from ..driver import ThreadTickDriver, TickDriver
from ..narration import audio_from_value, story_from_value
from ..schedule import build_schedule, generate_id
from ..session import StorySession, WorkoutSession

logger = logging.getLogger(__name__)

DriverFactory = Callable[[], TickDriver]


class SessionService:
    """Holds the process's single active session and fans its snapshots out
    to stream subscribers."""

    def __init__(
        self,
        settings: Settings,
        driver_factory: DriverFactory | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings
        self._driver_factory = driver_factory or (lambda: ThreadTickDriver(settings.tick_seconds))
        self._clock = clock
        self._lock = Lock()
        self._session: WorkoutSession | None = None
        self._subscribers: list[queue.Queue[dict[str, Any]]] = []

    def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        # ScheduleError propagates to the route.
        schedule = build_schedule(payload.get("sets", []))
        mode = str(payload.get("story_mode", "session"))
        story = StorySession(
            id=generate_id(),
            schedule=schedule,
            story_mode=mode,
            language=str(payload.get("language", "en")),
            genres=tuple(payload.get("genres", ())),
            story=story_from_value(mode, payload.get("story")),
            audio=audio_from_value(payload.get("audio")),
        )
        session = WorkoutSession(
            story,
            clock=self._clock,
            driver=self._driver_factory(),
            max_retries=self.settings.audio_retries,
        )
        session.subscribe(lambda _state: self._broadcast({"event": "state", **session.snapshot()}))

        with self._lock:
            previous = self._session
            self._session = session
        if previous is not None:
            previous.discard()
        logger.info("created session %s", story.id)

        snapshot = session.snapshot()
        self._broadcast({"event": "created", **snapshot})
        return snapshot

    def current(self) -> WorkoutSession | None:
        with self._lock:
            return self._session

    def snapshot(self) -> dict[str, Any]:
        session = self.current()
        return session.snapshot() if session is not None else {"active": False}

    def control(self, action: str) -> dict[str, Any]:
        session = self.current()
        if session is None:
            return {"active": False}
        actions: dict[str, Callable[[], object]] = {
            "start": session.start,
            "pause": session.pause,
            "resume": session.resume,
            "reset": session.reset,
            "toggle": session.toggle,
            "mute": session.toggle_mute,
            "retry-audio": session.retry_audio,
        }
        actions[action]()
        snapshot = session.snapshot()
        if action in {"mute", "retry-audio"}:
            self._broadcast({"event": "audio", **snapshot})
        return snapshot

    def audio_event(self, event: str, message: str = "") -> dict[str, Any]:
        session = self.current()
        if session is None:
            return {"active": False}
        if event == "ready":
            session.audio_ready()
        elif event == "playing":
            session.audio_playing()
        elif event == "error":
            session.audio_error(message)
        elif event == "blocked":
            session.audio_blocked()
        else:
            raise KeyError(event)
        snapshot = session.snapshot()
        self._broadcast({"event": "audio", **snapshot})
        return snapshot

    def discard(self) -> dict[str, Any]:
        with self._lock:
            session = self._session
            self._session = None
        if session is not None:
            session.discard()
            logger.info("discarded session %s", session.story.id)
            self._broadcast({"event": "discarded", "active": False})
        return {"active": False}

    def subscribe(self) -> queue.Queue[dict[str, Any]]:
        q: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=200)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue[dict[str, Any]]) -> None:
        with self._lock:
            self._subscribers = [item for item in self._subscribers if item is not q]

    def _broadcast(self, event: dict[str, Any]) -> None:
        with self._lock:
            alive: list[queue.Queue[dict[str, Any]]] = []
            for q in self._subscribers:
                try:
                    q.put_nowait(event)
                    alive.append(q)
                except queue.Full:
                    logger.debug("dropping slow stream subscriber")
                    continue
            self._subscribers = alive
