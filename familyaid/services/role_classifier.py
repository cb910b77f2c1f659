"""
Role Classifier.

Derives effective capabilities from an account's raw ``role`` and its
``username``.  An ``admin`` whose username is all digits (shaped like
a national identity number) is a dual-role account: it acts as a
household head on household views and as an administrator elsewhere.
``root`` accounts never get the dual-role treatment.

Nothing here is cached.  Callers classify the current identity every
time they need an answer, so a role edit takes effect immediately.
"""

from __future__ import annotations

import re
from typing import Optional, Protocol

from familyaid.models.auth_models import RoleClassification
from familyaid.models.enums import Capability, Role

_NUMERIC_USERNAME_RE: re.Pattern[str] = re.compile(r"[0-9]+")

HOUSEHOLD_DASHBOARD: str = "/dashboard"
ADMIN_DASHBOARD: str = "/admin"


class Account(Protocol):
    """Anything with a role and a username (``Identity`` or a user row)."""

    @property
    def role(self) -> str: ...  # noqa: E704

    @property
    def username(self) -> str: ...  # noqa: E704


class ManagedAccount(Account, Protocol):
    """An account as listed on the user-management screen."""

    @property
    def id(self) -> str: ...  # noqa: E704

    @property
    def is_protected(self) -> bool: ...  # noqa: E704


def is_numeric_username(username: str) -> bool:
    # ASCII digits only; identity numbers never use Arabic-Indic digits.
    return _NUMERIC_USERNAME_RE.fullmatch(username) is not None


def classify(account: Account) -> RoleClassification:
    """Return the capability flags for *account*."""
    role = account.role
    is_dual_role = role == Role.ADMIN and is_numeric_username(account.username)
    is_head = role == Role.HEAD or is_dual_role
    is_admin = role in (Role.ADMIN, Role.ROOT)
    is_root = role == Role.ROOT

    capabilities: set[Capability] = set()
    if is_head:
        capabilities.add(Capability.HEAD)
    if is_admin:
        capabilities.add(Capability.ADMIN)
    if is_root:
        capabilities.add(Capability.ROOT)

    return RoleClassification(
        is_root=is_root,
        is_admin=is_admin,
        is_head=is_head,
        is_dual_role=is_dual_role,
        capabilities=frozenset(capabilities),
    )


def default_dashboard(account: Account) -> str:
    """Landing route after login: heads go home, everyone else to admin."""
    if account.role == Role.HEAD:
        return HOUSEHOLD_DASHBOARD
    return ADMIN_DASHBOARD


def can_access_root_views(account: Optional[Account]) -> bool:
    """System logs and global settings are root-only.

    The route table expresses the same rule as ``ROOT_ONLY`` role lists;
    this helper answers it for the out-of-scope activity-log and
    user-management screens, which render as placeholders here.
    """
    return account is not None and classify(account).is_root


def can_manage_users(account: Optional[Account]) -> bool:
    """The user-management screen is open to root and dual-role admins."""
    if account is None:
        return False
    classification = classify(account)
    return classification.is_root or classification.is_dual_role


def can_edit_account(actor: Optional[ManagedAccount], target: ManagedAccount) -> bool:
    """Whether *actor* may edit or delete *target*.

    Used by the user-management screen, which is rendered as a
    placeholder in this client; the server enforces the same rules.

    - root: anyone except itself;
    - admin: heads and unprotected admins, never root or protected admins;
    - head: nobody.
    """
    if actor is None:
        return False
    if actor.role == Role.ROOT:
        return target.id != actor.id
    if actor.role == Role.ADMIN:
        if target.role == Role.ROOT:
            return False
        if target.role == Role.ADMIN:
            return not target.is_protected
        return target.role == Role.HEAD
    return False
