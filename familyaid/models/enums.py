"""
Shared Enumerations for FamilyAid Models.

StrEnum values compare equal to their string equivalents, so
``role == "admin"`` keeps working against raw server payloads.
"""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Raw account role as stored by the server."""

    HEAD = "head"
    ADMIN = "admin"
    ROOT = "root"


class Capability(StrEnum):
    """Derived capability.  An account may hold several at once."""

    HEAD = "HEAD"
    ADMIN = "ADMIN"
    ROOT = "ROOT"


class LoginType(StrEnum):
    """Which identifier semantics the login form is using.

    ``head`` expects a national identity number; ``admin`` and ``root``
    take a free-form username.  All three are sent as ``username``.
    """

    HEAD = "head"
    ADMIN = "admin"
    ROOT = "root"


class LoginFailureKind(StrEnum):
    """Client-side classification of a failed login."""

    INVALID_CREDENTIALS = "invalid_credentials"
    REMAINING_ATTEMPTS = "remaining_attempts"
    LOCKED_OUT = "locked_out"
    TIMED_OUT = "timed_out"
    NETWORK_ERROR = "network_error"
    VALIDATION_ERROR = "validation_error"


class LoginState(StrEnum):
    """States of the login flow controller."""

    IDLE = "IDLE"
    SUBMITTING = "SUBMITTING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class GuardOutcome(StrEnum):
    """What a guarded route renders."""

    SPINNER = "spinner"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_NOT_FOUND = "redirect_not_found"
    RENDER = "render"


class PolicyRule(StrEnum):
    """Individual password policy rules."""

    MIN_LENGTH = "min_length"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    NUMBERS = "numbers"
    SPECIAL_CHARS = "special_chars"
