from __future__ import annotations

import json
import queue
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from ...schedule import ScheduleError
from ..deps import get_service
from ..schemas import AudioEventRequest, SessionCreateRequest
from ..session_service import SessionService

router = APIRouter(prefix="/api/v1", tags=["session"])

CONTROL_ACTIONS = ("start", "pause", "resume", "reset", "toggle", "mute", "retry-audio")
AUDIO_EVENTS = ("ready", "playing", "error", "blocked")


@router.post("/session")
def create_session(
    payload: SessionCreateRequest,
    service: SessionService = Depends(get_service),
) -> dict[str, object]:
    try:
        return service.create(payload.model_dump())
    except (ScheduleError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/session")
def session_state(service: SessionService = Depends(get_service)) -> dict[str, object]:
    return service.snapshot()


@router.delete("/session")
def discard_session(service: SessionService = Depends(get_service)) -> dict[str, object]:
    return service.discard()


@router.get("/session/stream")
def session_stream(service: SessionService = Depends(get_service)) -> StreamingResponse:
    subscriber = service.subscribe()

    def event_iter() -> Iterator[str]:
        try:
            yield f"data: {json.dumps({'event': 'snapshot', **service.snapshot()}, default=str)}\n\n"
            while True:
                try:
                    event = subscriber.get(timeout=10)
                    yield f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"
                except queue.Empty:
                    yield ": keepalive\n\n"
        finally:
            service.unsubscribe(subscriber)

    return StreamingResponse(event_iter(), media_type="text/event-stream")


@router.post("/session/audio/{event}")
def audio_event(
    event: str,
    payload: AudioEventRequest | None = None,
    service: SessionService = Depends(get_service),
) -> dict[str, object]:
    if event not in AUDIO_EVENTS:
        raise HTTPException(status_code=404, detail=f"unknown audio event: {event}")
    return service.audio_event(event, payload.message if payload is not None else "")


@router.post("/session/{action}")
def control_session(action: str, service: SessionService = Depends(get_service)) -> dict[str, object]:
    if action not in CONTROL_ACTIONS:
        raise HTTPException(status_code=404, detail=f"unknown action: {action}")
    return service.control(action)
