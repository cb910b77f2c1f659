"""
Authentication Pipeline Models.

Pydantic models for the request/response contracts between the auth
services and the UI layer.  Every auth operation returns one of these
structured results rather than raw strings or exceptions.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from familyaid.models.enums import (
    Capability,
    GuardOutcome,
    LoginFailureKind,
    PolicyRule,
)
from familyaid.models.identity import Identity


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class LoginCredentials(BaseModel):
    """Wire shape of ``POST /api/login``; every login type uses it."""

    username: str
    password: str

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Password policy
# ---------------------------------------------------------------------------

class PasswordViolation(BaseModel):
    """One failed password rule with its user-facing message."""

    rule: PolicyRule
    message: str

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Role classification
# ---------------------------------------------------------------------------

class RoleClassification(BaseModel):
    """Effective capability flags derived from ``role`` and ``username``."""

    is_root: bool
    is_admin: bool
    is_head: bool
    is_dual_role: bool
    capabilities: frozenset[Capability] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Login failures
# ---------------------------------------------------------------------------

class LoginFailure(BaseModel):
    """What the client can tell about a rejected login.

    The server owns the attempt counter and the lockout timer; this is
    only the client's reading of the error it got back.

    Attributes
    ----------
    kind:
        Failure category.
    minutes:
        Lockout duration, set only for ``LOCKED_OUT``.
    remaining_attempts:
        Attempts left, set only for ``REMAINING_ATTEMPTS``.
    server_message:
        The raw server text, kept for logging.
    """

    kind: LoginFailureKind
    minutes: Optional[int] = None
    remaining_attempts: Optional[int] = None
    server_message: Optional[str] = None

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Unified results
# ---------------------------------------------------------------------------

class AuthResult(BaseModel):
    """Result of a login attempt.

    Attributes
    ----------
    success:
        ``True`` when the server accepted the credentials.
    identity:
        The identity written to the session cache on success.
    redirect_to:
        Route to navigate to after a successful login.
    welcome_message:
        Ready-to-show greeting.  ``None`` for household heads, whose
        greeting waits on the household lookup.
    failure:
        Classified failure (``None`` on success).
    error_message:
        User-facing rendering of *failure*.
    """

    success: bool
    identity: Optional[Identity] = None
    redirect_to: Optional[str] = None
    welcome_message: Optional[str] = None
    failure: Optional[LoginFailure] = None
    error_message: Optional[str] = None

    @property
    def needs_household_lookup(self) -> bool:
        return self.success and self.welcome_message is None


class RegistrationResult(BaseModel):
    """Result of a household registration.

    ``field_errors`` maps form field names to their messages; a
    non-empty mapping means nothing was sent to the server.
    """

    success: bool
    identity: Optional[Identity] = None
    field_errors: dict[str, list[str]] = Field(default_factory=dict)
    error_message: Optional[str] = None


class PasswordChangeResult(BaseModel):
    """Result of a password change."""

    success: bool
    field_errors: dict[str, list[str]] = Field(default_factory=dict)
    error_message: Optional[str] = None


# ---------------------------------------------------------------------------
# Route guard
# ---------------------------------------------------------------------------

class GuardDecision(BaseModel):
    """What a guarded route should show right now.

    Attributes
    ----------
    outcome:
        Spinner, one of the two redirects, or render.
    params:
        Route parameters passed through to the view on ``RENDER``.
    redirect_to:
        Target path for the redirect outcomes.
    retry_after_s:
        For a spinner shown only because of the settle delay: how long
        until the guard should be asked again.
    """

    outcome: GuardOutcome
    params: dict[str, str] = Field(default_factory=dict)
    redirect_to: Optional[str] = None
    retry_after_s: Optional[float] = None

    model_config = ConfigDict(frozen=True)
