from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import sys
from typing import Mapping


class ConfigError(ValueError):
    pass


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    tick_seconds: float = 1.0
    audio_retries: int = 3
    log_level: str = "WARNING"
    host: str = "127.0.0.1"
    port: int = 8765


def _read(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(name, "").strip()
    return value or None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    defaults = Settings()

    raw_tick = _read(env, "STORYTIMER_TICK_SECONDS")
    try:
        tick_seconds = float(raw_tick) if raw_tick is not None else defaults.tick_seconds
    except ValueError as exc:
        raise ConfigError(f"STORYTIMER_TICK_SECONDS must be a number, got {raw_tick!r}") from exc
    if tick_seconds <= 0:
        raise ConfigError("STORYTIMER_TICK_SECONDS must be positive")

    raw_retries = _read(env, "STORYTIMER_AUDIO_RETRIES")
    try:
        audio_retries = int(raw_retries) if raw_retries is not None else defaults.audio_retries
    except ValueError as exc:
        raise ConfigError(f"STORYTIMER_AUDIO_RETRIES must be an integer, got {raw_retries!r}") from exc
    if audio_retries < 0:
        raise ConfigError("STORYTIMER_AUDIO_RETRIES must be >= 0")

    log_level = (_read(env, "STORYTIMER_LOG_LEVEL") or defaults.log_level).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"STORYTIMER_LOG_LEVEL is not a logging level: {log_level}")

    raw_port = _read(env, "STORYTIMER_PORT")
    try:
        port = int(raw_port) if raw_port is not None else defaults.port
    except ValueError as exc:
        raise ConfigError(f"STORYTIMER_PORT must be an integer, got {raw_port!r}") from exc

    return Settings(
        tick_seconds=tick_seconds,
        audio_retries=audio_retries,
        log_level=log_level,
        host=_read(env, "STORYTIMER_HOST") or defaults.host,
        port=port,
    )


def configure_logging(level: str = "WARNING") -> None:
    root = logging.getLogger()
    if not any(getattr(handler, "_storytimer", False) for handler in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._storytimer = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level.upper())
