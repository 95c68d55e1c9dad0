from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_service
from ..schemas import HealthOut
from ..session_service import SessionService

router = APIRouter(prefix="/api/v1", tags=["system"])


@router.get("/health", response_model=HealthOut)
def health(service: SessionService = Depends(get_service)) -> HealthOut:
    return HealthOut(session_active=service.current() is not None)
