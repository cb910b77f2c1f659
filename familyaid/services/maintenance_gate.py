"""
Maintenance Gate.

While maintenance mode is on, only ``admin`` and ``root`` accounts get
past the holding page.  The login view stays reachable so that they
can sign in.
"""

from __future__ import annotations

from typing import Optional

from familyaid.models.enums import Role
from familyaid.models.identity import Identity
from familyaid.services.app_settings_service import AppSettingsService

LOGIN_PATH: str = "/auth"

_PRIVILEGED_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.ROOT})


class MaintenanceGate:
    """Reads the maintenance flag from the injected settings service."""

    def __init__(self, settings: AppSettingsService) -> None:
        self._settings: AppSettingsService = settings

    def is_blocked(self, identity: Optional[Identity], current_path: str) -> bool:
        """``True`` when *current_path* must show the holding page."""
        return is_blocked(self._settings.maintenance, identity, current_path)


def is_blocked(maintenance: bool, identity: Optional[Identity], current_path: str) -> bool:
    if not maintenance:
        return False
    if current_path == LOGIN_PATH:
        return False
    return identity is None or identity.role not in _PRIVILEGED_ROLES
