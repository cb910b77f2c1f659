"""
Route Guard.

Decides what a navigable route shows, in this order:

1. Spinner while the identity is still loading, and for a short settle
   delay after it finishes loading.
2. Redirect to the login view when nobody is logged in.
3. Redirect to not-found when the account's raw ``role`` is not in the
   route's ``required_roles``.  A dual-role admin therefore reaches
   every route that lists ``admin``, household routes included.
4. For routes that declare ``required_capabilities``, redirect to
   not-found unless the account holds at least one of them.
5. Render, passing the route parameters through.

These checks are for presentation only.  The server authorizes every
request on its own.
"""

from __future__ import annotations

from typing import Optional, Protocol

from familyaid.auth import SessionManager
from familyaid.models.auth_models import GuardDecision
from familyaid.models.enums import Capability, GuardOutcome, Role
from familyaid.services.role_classifier import classify

LOGIN_PATH: str = "/auth"
NOT_FOUND_PATH: str = "/not-found"


class GuardedRoute(Protocol):
    """The parts of a route entry the guard reads."""

    @property
    def required_roles(self) -> frozenset[Role]: ...  # noqa: E704

    @property
    def required_capabilities(self) -> frozenset[Capability]: ...  # noqa: E704

    @property
    def public(self) -> bool: ...  # noqa: E704


class RouteGuard:
    """Evaluates routes against the shared session.

    Parameters
    ----------
    session:
        Shared identity record; its clock also times the settle delay.
    settle_delay_s:
        Spinner time after loading ends.  ``0`` relies on the resolved
        state alone.
    """

    def __init__(self, session: SessionManager, settle_delay_s: float = 0.1) -> None:
        self._session: SessionManager = session
        self._settle_delay_s: float = max(0.0, settle_delay_s)

    @property
    def settle_delay_s(self) -> float:
        return self._settle_delay_s

    def evaluate(
        self,
        entry: GuardedRoute,
        params: Optional[dict[str, str]] = None,
    ) -> GuardDecision:
        """Return the ``GuardDecision`` for *entry* at this moment."""
        params = dict(params or {})
        if entry.public:
            return GuardDecision(outcome=GuardOutcome.RENDER, params=params)

        session = self._session
        if session.is_loading:
            return GuardDecision(outcome=GuardOutcome.SPINNER)

        if not session.is_resolved:
            # Nothing fetched yet, or a fetch is running: wait.  A fetch
            # that gave up with an error is treated as logged out.
            if session.is_fetching or session.error is None:
                return GuardDecision(outcome=GuardOutcome.SPINNER)
            return GuardDecision(outcome=GuardOutcome.REDIRECT_LOGIN, redirect_to=LOGIN_PATH)

        remaining = self._settle_remaining()
        if remaining > 0:
            return GuardDecision(outcome=GuardOutcome.SPINNER, retry_after_s=remaining)

        identity = session.identity
        if identity is None:
            return GuardDecision(outcome=GuardOutcome.REDIRECT_LOGIN, redirect_to=LOGIN_PATH)

        if entry.required_roles and identity.role not in entry.required_roles:
            return GuardDecision(
                outcome=GuardOutcome.REDIRECT_NOT_FOUND, redirect_to=NOT_FOUND_PATH,
            )

        if entry.required_capabilities:
            capabilities = classify(identity).capabilities
            if not capabilities & entry.required_capabilities:
                return GuardDecision(
                    outcome=GuardOutcome.REDIRECT_NOT_FOUND, redirect_to=NOT_FOUND_PATH,
                )

        return GuardDecision(outcome=GuardOutcome.RENDER, params=params)

    def _settle_remaining(self) -> float:
        if self._settle_delay_s <= 0:
            return 0.0
        settled_at = self._session.settled_at
        if settled_at is None:
            return self._settle_delay_s
        return self._settle_delay_s - (self._session.now() - settled_at)
