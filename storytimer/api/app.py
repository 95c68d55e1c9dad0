from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from .. import __version__
from ..clock import Clock
from ..config import Settings, load_settings
from .routes.health import router as health_router
from .routes.meta import router as meta_router
from .routes.session import router as session_router
from .session_service import DriverFactory, SessionService


def create_app(
    settings: Settings | None = None,
    driver_factory: DriverFactory | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    resolved = settings or load_settings()
    service = SessionService(resolved, driver_factory=driver_factory, clock=clock)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        # Release the tick thread and audio output on shutdown.
        service.discard()

    app = FastAPI(title="StoryTimer API", version=__version__, lifespan=lifespan)
    app.state.session_service = service

    app.include_router(health_router)
    app.include_router(meta_router)
    app.include_router(session_router)
    return app
