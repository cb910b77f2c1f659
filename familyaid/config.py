"""
Application Configuration.

Pydantic Settings model for the FamilyAid client.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

_LOCAL_HOSTS: frozenset[str] = frozenset({"localhost", "127.0.0.1", "::1"})


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- REST API ---
    API_BASE_URL: str = "http://localhost:3001"
    REQUEST_TIMEOUT_S: float = Field(default=15.0, gt=0)

    # --- Identity cache ---
    IDENTITY_STALE_AFTER_S: float = Field(default=300.0, ge=0)
    IDENTITY_FETCH_RETRIES: int = Field(default=1, ge=0)

    # --- Route guard ---
    ROUTE_SETTLE_DELAY_MS: int = Field(default=100, ge=0)

    # --- Public settings / maintenance flag ---
    # 0 means "fetch once per mount"; anything else is a polling period.
    SETTINGS_REFRESH_INTERVAL_S: float = Field(default=0.0, ge=0)

    # --- Local store ---
    LOCAL_DB_PATH: str = "familyaid_local.db"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "familyaid.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @field_validator("API_BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when the configuration looks unsafe.

        Session cookies travel with every request, so a remote API
        reached over plain HTTP leaks them.  Local development servers
        are exempt.
        """
        _log = logging.getLogger("familyaid.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; all configuration loaded from "
                "environment variables or defaults."
            )

        parsed = urlparse(self.API_BASE_URL)
        if parsed.scheme != "https" and parsed.hostname not in _LOCAL_HOSTS:
            _log.warning(
                "API_BASE_URL '%s' is not HTTPS; session cookies will be "
                "sent in clear text.",
                self.API_BASE_URL,
            )

        return self

    @property
    def route_settle_delay_s(self) -> float:
        """Route-guard settle delay in seconds."""
        return self.ROUTE_SETTLE_DELAY_MS / 1000.0


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    Uses a check-lock-check pattern so the fast path takes no lock.
    Prefer constructor injection of ``AppConfig`` in new code; this
    factory exists for the logger, which is created before the
    composition root has a config to hand out.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
