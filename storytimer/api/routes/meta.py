from __future__ import annotations

import platform

from fastapi import APIRouter, Depends

from ... import __version__
from ..deps import get_service
from ..schemas import MetaOut
from ..session_service import SessionService

router = APIRouter(prefix="/api/v1", tags=["system"])


@router.get("/meta", response_model=MetaOut)
def meta(service: SessionService = Depends(get_service)) -> MetaOut:
    return MetaOut(
        app="StoryTimer",
        version=__version__,
        platform=platform.platform(),
        tick_seconds=service.settings.tick_seconds,
        audio_retries=service.settings.audio_retries,
    )
