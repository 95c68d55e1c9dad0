from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class IntervalIn(BaseModel):
    id: str = ""
    label: str = ""
    duration: int = Field(gt=0)
    pause_after: int = Field(default=0, ge=0)


class SetIn(BaseModel):
    id: str = ""
    intervals: list[IntervalIn] = Field(min_length=1)
    rest_after: int = Field(default=0, ge=0)


class SessionCreateRequest(BaseModel):
    sets: list[SetIn] = Field(min_length=1)
    story_mode: Literal["session", "set", "interval"] = "session"
    language: str = "en"
    genres: list[str] = Field(default_factory=list)
    story: str | list[str] | None = None
    audio: str | list[str] | None = None


class AudioEventRequest(BaseModel):
    message: str = ""


class HealthOut(BaseModel):
    status: str = Field(default="ok")
    session_active: bool = False


class MetaOut(BaseModel):
    app: str
    version: str
    platform: str
    tick_seconds: float
    audio_retries: int
