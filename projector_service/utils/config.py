"""Runtime settings loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Immutable application settings.

    Tests derive variants with ``dataclasses.replace`` instead of mutating
    the cached instance.
    """

    app_name: str = "Projector Scheduling Service"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    database_path: Path = PROJECT_ROOT / "db" / "projectors.db"
    projector_count: int = 3
    suggestion_window_minutes: int = 120
    persistence_timeout_seconds: float = 30.0
    host: str = "127.0.0.1"
    port: int = 8000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from the environment."""
    defaults = Settings()
    database_path = os.getenv("PROJECTOR_DB_PATH")
    return Settings(
        app_name=os.getenv("APP_NAME", defaults.app_name),
        app_version=os.getenv("APP_VERSION", defaults.app_version),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        database_path=Path(database_path) if database_path else defaults.database_path,
        projector_count=_env_int("PROJECTOR_COUNT", defaults.projector_count),
        suggestion_window_minutes=_env_int(
            "SUGGESTION_WINDOW_MINUTES",
            defaults.suggestion_window_minutes,
        ),
        persistence_timeout_seconds=_env_float(
            "PERSISTENCE_TIMEOUT_SECONDS",
            defaults.persistence_timeout_seconds,
        ),
        host=os.getenv("HOST", defaults.host),
        port=_env_int("PORT", defaults.port),
    )
