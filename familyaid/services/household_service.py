"""
Household Service.

The two household endpoints the auth layer depends on: the current
account's household (for the welcome message) and household
registration from the login screen.  Everything else about households
belongs to the CRUD screens.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from familyaid.api_client import ApiClient, ApiNotFoundError, JsonBody
from familyaid.auth import SessionManager
from familyaid.auth_guard import require_auth
from familyaid.logger import StructuredLogger
from familyaid.models.household import Household, HouseholdRegistration
from familyaid.services.base_service import BaseService

_FAMILY_PATH: str = "/api/family"
_REGISTER_FAMILY_PATH: str = "/api/register-family"


class HouseholdService(BaseService):
    """Household lookups and registration.

    Parameters
    ----------
    api:
        REST client.
    session:
        Session state; the household lookup requires a logged-in identity.
    logger:
        Structured logger.
    """

    def __init__(self, api: ApiClient, session: SessionManager, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._api: ApiClient = api
        self._session: SessionManager = session
        self._fetch_current = require_auth(session)(self._fetch_current_household)

    def get_current_household(self) -> Optional[Household]:
        """Household of the logged-in account, or ``None`` if it has none.

        Raises
        ------
        AuthenticationError
            If nobody is logged in.
        ApiError
            For failures other than 404.
        """
        return self._fetch_current()

    def _fetch_current_household(self) -> Optional[Household]:
        try:
            payload = self._api.get_json(_FAMILY_PATH)
        except ApiNotFoundError:
            return None
        if not isinstance(payload, dict) or not payload:
            return None
        try:
            return Household.model_validate(payload)
        except ValidationError as exc:
            self._logger.warning("Unreadable household record: %s", exc)
            return None

    def register_family(self, registration: HouseholdRegistration) -> JsonBody:
        """Create a household and its head account.

        The body carries no members; they are added from the dashboard
        afterwards.  Validation is the caller's job.
        """
        payload = {
            "user": {"password": registration.password},
            "family": registration.family_payload(),
            "members": [],
        }
        response = self._api.post_json(_REGISTER_FAMILY_PATH, payload)
        self._logger.info(
            "Household registered for identity number %s.",
            registration.husband_id.strip(),
            extra={"event": "REGISTER"},
        )
        return response
