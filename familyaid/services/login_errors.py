"""
Login Error Classification.

Maps a failed ``POST /api/login`` to a ``LoginFailure`` and renders it
for the user.  Order of precedence:

1. A structured ``kind`` in the error body (``invalid_credentials``,
   ``locked_out`` with ``minutes``, ``remaining_attempts`` with
   ``remaining``).
2. The server's message text, in its Arabic wording or an English
   equivalent.
3. Timeout / transport exception types.
4. Everything else is reported as invalid credentials.

The lockout counter lives on the server.  Classification is a pure
function of one error, so repeated failures never accumulate anything
client-side.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from familyaid.api_client import ApiError, ApiTimeoutError, ApiTransportError
from familyaid.models.auth_models import LoginFailure
from familyaid.models.enums import LoginFailureKind


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# "الحساب محظور مؤقتاً. يرجى المحاولة بعد 15 دقيقة"
# "تم حظر الحساب لمدة 15 دقيقة بسبب محاولات تسجيل الدخول الفاشلة المتكررة"
_LOCKOUT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:محظور مؤقتاً|حظر الحساب).*?(\d+) دقيقة"),
    re.compile(r"locked.*?(\d+)\s*minutes?", re.IGNORECASE),
)

# "... المحاولات المتبقية: 3"
_REMAINING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"المحاولات المتبقية: (\d+)"),
    re.compile(r"(?:remaining attempts?|attempts? remaining)\s*:?\s*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s+attempts? (?:remaining|left)", re.IGNORECASE),
)


# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------

_MESSAGES: dict[LoginFailureKind, str] = {
    LoginFailureKind.INVALID_CREDENTIALS: "Login failed: incorrect username or password.",
    LoginFailureKind.REMAINING_ATTEMPTS: (
        "Incorrect username or password. {remaining} attempts remaining."
    ),
    LoginFailureKind.LOCKED_OUT: (
        "Account locked for {minutes} minutes. Please wait before trying again."
    ),
    LoginFailureKind.TIMED_OUT: "The server did not respond in time. Please try again.",
    LoginFailureKind.NETWORK_ERROR: "Cannot reach the server. Check your internet connection.",
    LoginFailureKind.VALIDATION_ERROR: "Please enter your username and password.",
}


def classify_login_error(exc: Exception) -> LoginFailure:
    """Classify the exception raised by a failed login.

    Parameters
    ----------
    exc:
        Usually an ``ApiError``; anything else is treated as an
        unclassified failure.

    Returns
    -------
    LoginFailure
    """
    message: Optional[str] = exc.message if isinstance(exc, ApiError) else str(exc) or None

    if isinstance(exc, ApiError) and exc.kind:
        structured = _from_kind(exc.kind, exc.details, message)
        if structured is not None:
            return structured

    if message:
        for pattern in _LOCKOUT_PATTERNS:
            match = pattern.search(message)
            if match:
                return LoginFailure(
                    kind=LoginFailureKind.LOCKED_OUT,
                    minutes=int(match.group(1)),
                    server_message=message,
                )
        for pattern in _REMAINING_PATTERNS:
            match = pattern.search(message)
            if match:
                return LoginFailure(
                    kind=LoginFailureKind.REMAINING_ATTEMPTS,
                    remaining_attempts=int(match.group(1)),
                    server_message=message,
                )

    if isinstance(exc, ApiTimeoutError):
        return LoginFailure(kind=LoginFailureKind.TIMED_OUT, server_message=message)
    if isinstance(exc, ApiTransportError):
        return LoginFailure(kind=LoginFailureKind.NETWORK_ERROR, server_message=message)

    return LoginFailure(kind=LoginFailureKind.INVALID_CREDENTIALS, server_message=message)


def _from_kind(
    kind: str,
    details: dict[str, Any],
    message: Optional[str],
) -> Optional[LoginFailure]:
    """Read a structured error; ``None`` when *kind* is not one we know."""
    normalized = kind.strip().lower()

    if normalized == LoginFailureKind.LOCKED_OUT:
        minutes = _int_detail(details, "minutes", "lockoutMinutes", "lockout_minutes")
        if minutes is not None:
            return LoginFailure(
                kind=LoginFailureKind.LOCKED_OUT, minutes=minutes, server_message=message,
            )
    elif normalized == LoginFailureKind.REMAINING_ATTEMPTS:
        remaining = _int_detail(
            details, "remaining", "remainingAttempts", "remaining_attempts", "n",
        )
        if remaining is not None:
            return LoginFailure(
                kind=LoginFailureKind.REMAINING_ATTEMPTS,
                remaining_attempts=remaining,
                server_message=message,
            )
    elif normalized == LoginFailureKind.INVALID_CREDENTIALS:
        return LoginFailure(kind=LoginFailureKind.INVALID_CREDENTIALS, server_message=message)

    return None


def _int_detail(details: dict[str, Any], *keys: str) -> Optional[int]:
    for key in keys:
        value = details.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
    return None


def failure_message(failure: LoginFailure) -> str:
    """Render *failure* as the text shown in the login view."""
    template = _MESSAGES[failure.kind]
    if failure.kind is LoginFailureKind.VALIDATION_ERROR and failure.server_message:
        return failure.server_message
    return template.format(
        minutes=failure.minutes,
        remaining=failure.remaining_attempts,
    )
