"""
Password Policy Validator.

Pure checks of a candidate password against a ``PasswordPolicy``.  Run
before registration and password-change requests; a non-empty result
blocks submission.  Existing passwords are never re-validated.
"""

from __future__ import annotations

import re

from familyaid.models.auth_models import PasswordViolation
from familyaid.models.enums import PolicyRule
from familyaid.models.settings import PasswordPolicy

_UPPERCASE_RE: re.Pattern[str] = re.compile(r"[A-Z]")
_LOWERCASE_RE: re.Pattern[str] = re.compile(r"[a-z]")
_DIGIT_RE: re.Pattern[str] = re.compile(r"\d")
_SPECIAL_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9]")


def validate_password(password: str, policy: PasswordPolicy) -> list[PasswordViolation]:
    """Return one violation per failed rule; an empty list means valid.

    Every rule is checked independently so the user sees all problems
    at once.  Never raises.

    Parameters
    ----------
    password:
        The candidate password.
    policy:
        Rules currently in force.

    Returns
    -------
    list[PasswordViolation]
    """
    violations: list[PasswordViolation] = []

    if len(password) < policy.min_length:
        violations.append(PasswordViolation(
            rule=PolicyRule.MIN_LENGTH,
            message=f"Password must be at least {policy.min_length} characters.",
        ))
    if policy.require_uppercase and not _UPPERCASE_RE.search(password):
        violations.append(PasswordViolation(
            rule=PolicyRule.UPPERCASE,
            message="Password must contain at least one uppercase letter.",
        ))
    if policy.require_lowercase and not _LOWERCASE_RE.search(password):
        violations.append(PasswordViolation(
            rule=PolicyRule.LOWERCASE,
            message="Password must contain at least one lowercase letter.",
        ))
    if policy.require_numbers and not _DIGIT_RE.search(password):
        violations.append(PasswordViolation(
            rule=PolicyRule.NUMBERS,
            message="Password must contain at least one digit.",
        ))
    if policy.require_special_chars and not _SPECIAL_RE.search(password):
        violations.append(PasswordViolation(
            rule=PolicyRule.SPECIAL_CHARS,
            message="Password must contain at least one special character.",
        ))

    return violations


def violation_messages(password: str, policy: PasswordPolicy) -> list[str]:
    """Messages only, ready to attach to a form field."""
    return [violation.message for violation in validate_password(password, policy)]
