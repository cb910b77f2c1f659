"""
Application Settings Service.

Holds the current settings snapshot for the whole client:

- ``settings``: the full document from ``GET /api/settings``, merged
  over ``AppSettings`` defaults.  Drives the password policy and the
  login page text.
- ``public``: ``GET /api/public/settings``, readable without a session.
  Carries the maintenance flag.

Every successful fetch is copied into the local ``app_settings``
key-value table.  When the server cannot be reached the last copy is
used, then the defaults.  ``refresh()`` and ``refresh_public()`` swap
the snapshot in one assignment, so readers always see a whole
document.

The ``app_settings`` table::

    CREATE TABLE IF NOT EXISTS app_settings (
        key   TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

from __future__ import annotations

import json
import sqlite3
import threading
from typing import Any, Optional

from pydantic import ValidationError

from familyaid.api_client import ApiClient, ApiError
from familyaid.auth import SessionManager
from familyaid.auth_guard import require_roles
from familyaid.database import LocalStore
from familyaid.logger import StructuredLogger
from familyaid.models.enums import Role
from familyaid.models.settings import AppSettings, PasswordPolicy, PublicSettings
from familyaid.services.base_service import BaseService
from familyaid.utils.audit import log_audit_event

_SETTINGS_PATH: str = "/api/settings"
_PUBLIC_SETTINGS_PATH: str = "/api/public/settings"

_KEY_SERVER_SETTINGS: str = "server_settings"
_KEY_PUBLIC_SETTINGS: str = "public_settings"


class AppSettingsService(BaseService):
    """Server settings with a local fallback copy.

    Parameters
    ----------
    api:
        REST client.
    store:
        Local SQLite store holding the ``app_settings`` table.
    session:
        Session state; toggling maintenance is root-only.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        api: ApiClient,
        store: LocalStore,
        session: SessionManager,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._api: ApiClient = api
        self._store: LocalStore = store
        self._session: SessionManager = session
        self._lock: threading.Lock = threading.Lock()
        self._settings: AppSettings = self._load_local(_KEY_SERVER_SETTINGS, AppSettings)
        self._public: PublicSettings = self._load_local(_KEY_PUBLIC_SETTINGS, PublicSettings)
        self._set_maintenance_guarded = require_roles(session, {Role.ROOT})(
            self._post_maintenance,
        )

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    @property
    def settings(self) -> AppSettings:
        with self._lock:
            return self._settings

    @property
    def public(self) -> PublicSettings:
        with self._lock:
            return self._public

    @property
    def password_policy(self) -> PasswordPolicy:
        """Rules currently in force for new passwords."""
        return self.settings.password_policy

    @property
    def maintenance(self) -> bool:
        return self.public.maintenance

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self) -> AppSettings:
        """Fetch the full settings document; fall back to the local copy."""
        try:
            payload = self._api.get_json(_SETTINGS_PATH)
            settings = AppSettings.model_validate(_drop_blank(payload))
        except (ApiError, ValidationError) as exc:
            self._logger.warning("Settings fetch failed; using local copy: %s", exc)
            settings = self._load_local(_KEY_SERVER_SETTINGS, AppSettings)
        else:
            self.set(_KEY_SERVER_SETTINGS, settings.model_dump_json(by_alias=True))

        with self._lock:
            self._settings = settings
        return settings

    def refresh_public(self) -> PublicSettings:
        """Fetch the public settings (maintenance flag)."""
        try:
            payload = self._api.get_json(_PUBLIC_SETTINGS_PATH)
            public = PublicSettings.model_validate(_drop_blank(payload))
        except (ApiError, ValidationError) as exc:
            self._logger.warning("Public settings fetch failed; using local copy: %s", exc)
            public = self._load_local(_KEY_PUBLIC_SETTINGS, PublicSettings)
        else:
            self.set(_KEY_PUBLIC_SETTINGS, public.model_dump_json(by_alias=True))

        with self._lock:
            previous = self._public
            self._public = public
        if previous.maintenance != public.maintenance:
            self._logger.info("Maintenance mode is now %s.", "on" if public.maintenance else "off")
        return public

    # ------------------------------------------------------------------
    # Maintenance toggle
    # ------------------------------------------------------------------

    def set_maintenance(self, enabled: bool) -> PublicSettings:
        """Switch maintenance mode on the server.

        Raises
        ------
        AuthenticationError, AuthorizationError
            Unless a ``root`` account is logged in.
        ApiError
            If the server rejects the change.
        """
        return self._set_maintenance_guarded(enabled)

    def _post_maintenance(self, enabled: bool) -> PublicSettings:
        self._api.post_json(
            _SETTINGS_PATH,
            {"key": "maintenance", "value": str(enabled).lower(), "description": "وضع الصيانة"},
        )
        identity = self._session.get_current_identity()
        log_audit_event(
            logger=self._logger,
            action="MAINTENANCE_ON" if enabled else "MAINTENANCE_OFF",
            entity_type="Setting",
            entity_id="maintenance",
            user_id=identity.id,
            conn=self._store.sqlite,
        )
        with self._lock:
            self._public = self._public.model_copy(update={"maintenance": enabled})
            public = self._public
        self.set(_KEY_PUBLIC_SETTINGS, public.model_dump_json(by_alias=True))
        return public

    # ------------------------------------------------------------------
    # Generic key-value access
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        """Read a setting value by key.  Returns ``None`` if not found."""
        try:
            row = self._store.sqlite.execute(
                "SELECT value FROM app_settings WHERE key = ?",
                (key,),
            ).fetchone()
            return row["value"] if row is not None else None
        except sqlite3.Error as exc:
            self._logger.warning("Failed to read app_settings[%s]: %s", key, exc)
            return None

    def set(self, key: str, value: str) -> bool:
        """Upsert a setting value.  Returns ``True`` on success."""
        try:
            with self._store.write_lock:
                self._store.sqlite.execute(
                    """
                    INSERT INTO app_settings (key, value)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value      = excluded.value,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, value),
                )
                self._store.sqlite.commit()
            self._logger.debug("app_settings[%s] updated.", key)
            return True
        except sqlite3.Error as exc:
            self._logger.error("Failed to write app_settings[%s]: %s", key, exc)
            return False

    def _load_local(self, key: str, model: type[Any]) -> Any:
        """Last stored copy of *key* parsed as *model*, else its defaults."""
        raw = self.get(key)
        if raw is None:
            return model()
        try:
            return model.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            self._logger.warning("Ignoring unreadable app_settings[%s]: %s", key, exc)
            return model()


def _drop_blank(payload: Any) -> dict[str, Any]:
    """Keep only the keys the server actually filled in."""
    if not isinstance(payload, dict):
        return {}
    return {key: value for key, value in payload.items() if value is not None and value != ""}
