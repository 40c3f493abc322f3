"""Environment-driven application settings.

Values are read from the process environment after `load_dotenv()` has
populated it from a `.env` file, if one is present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_LORE_SERVICE_URL = "http://localhost:3001"
NON_PRODUCTION_ENVS = {"development", "dev", "debug"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be a number.") from exc
    if value <= 0:
        raise RuntimeError(f"{name}={raw!r} must be greater than zero.")
    return value


def _env_int(name: str, default: int, *, lower: int, upper: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be an integer.") from exc
    if not lower <= value <= upper:
        raise RuntimeError(f"{name}={raw!r} must be between {lower} and {upper}.")
    return value


@dataclass
class Settings:
    """Runtime configuration for the lore app shell.

    Attributes:
        lore_service_url: Base URL of the remote lore-generation service.
        environment: Deployment environment name; only non-production
            environments may use the offline lore fallback.
        request_timeout: Seconds allowed for one upload call.
        database_dir: Directory holding the SQLite file, or None to defer to
            the `DATABASE_DIR` lookup done by the database initializer.
        jpeg_quality: Quality factor used when encoding captures to JPEG.
        seed_preview: Insert the preview records into an empty store on startup.
        log_level: Logging level name for `logging.basicConfig`.
    """

    lore_service_url: str = DEFAULT_LORE_SERVICE_URL
    environment: str = "production"
    request_timeout: float = 60.0
    database_dir: Optional[Path] = None
    jpeg_quality: int = 80
    seed_preview: bool = False
    log_level: str = "INFO"

    @property
    def allow_offline_fallback(self) -> bool:
        """True only outside production."""
        return self.environment.strip().lower() in NON_PRODUCTION_ENVS


def load_settings() -> Settings:
    """Build `Settings` from the environment (and `.env`, when present)."""
    load_dotenv()

    database_dir = os.getenv("DATABASE_DIR")
    return Settings(
        lore_service_url=os.getenv("LORE_SERVICE_URL", DEFAULT_LORE_SERVICE_URL).strip(),
        environment=os.getenv("LORE_ENV", "production"),
        request_timeout=_env_float("LORE_REQUEST_TIMEOUT", 60.0),
        database_dir=Path(database_dir).expanduser() if database_dir and database_dir.strip() else None,
        jpeg_quality=_env_int("LORE_JPEG_QUALITY", 80, lower=1, upper=95),
        seed_preview=_env_flag("LORE_SEED_PREVIEW"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
