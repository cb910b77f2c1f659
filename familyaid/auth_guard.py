"""
Authentication Guard Decorators.

Factories producing decorators that gate service-layer functions behind
the cached identity.  These are client-side conveniences that fail
fast with a clear message; the server re-checks every request.

Usage::

    from familyaid.auth import SessionManager
    from familyaid.auth_guard import require_auth, require_roles

    session = SessionManager()

    @require_auth(session)
    def fetch_household() -> Household: ...

    @require_roles(session, {Role.ROOT})
    def read_system_logs() -> list[str]: ...
"""

from __future__ import annotations

from collections.abc import Collection
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from familyaid.auth import SessionManager
from familyaid.models.enums import Role

P = ParamSpec("P")
R = TypeVar("R")


class AuthenticationError(RuntimeError):
    """Raised when a guarded function is called without an identity."""


class AuthorizationError(RuntimeError):
    """Raised when the identity's role is not allowed to call the function."""


def require_auth(session: SessionManager) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Return a decorator that requires a logged-in identity in *session*."""

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            if not session.is_authenticated:
                raise AuthenticationError(
                    "Authentication required. Please log in before "
                    "performing this action."
                )
            return func(*args, **kwargs)

        return wrapper

    return decorator


def require_roles(
    session: SessionManager,
    roles: Collection[Role],
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Return a decorator that requires the raw role to be one of *roles*."""
    allowed = frozenset(roles)

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            identity = session.identity
            if identity is None:
                raise AuthenticationError(
                    "Authentication required. Please log in before "
                    "performing this action."
                )
            if identity.role not in allowed:
                raise AuthorizationError(
                    f"Role '{identity.role}' may not perform this action."
                )
            return func(*args, **kwargs)

        return wrapper

    return decorator
