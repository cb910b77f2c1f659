"""
Data Models Package.

Re-exports the pydantic models for short imports:
    from familyaid.models import Identity, Role, AppSettings
"""

from familyaid.models.auth_models import (
    AuthResult,
    GuardDecision,
    LoginCredentials,
    LoginFailure,
    PasswordChangeResult,
    PasswordViolation,
    RegistrationResult,
    RoleClassification,
)
from familyaid.models.enums import (
    Capability,
    GuardOutcome,
    LoginFailureKind,
    LoginState,
    LoginType,
    PolicyRule,
    Role,
)
from familyaid.models.household import Household, HouseholdRegistration
from familyaid.models.identity import Identity
from familyaid.models.settings import AppSettings, PasswordPolicy, PublicSettings

__all__ = [
    "AppSettings",
    "AuthResult",
    "Capability",
    "GuardDecision",
    "GuardOutcome",
    "Household",
    "HouseholdRegistration",
    "Identity",
    "LoginCredentials",
    "LoginFailure",
    "LoginFailureKind",
    "LoginState",
    "LoginType",
    "PasswordChangeResult",
    "PasswordPolicy",
    "PasswordViolation",
    "PolicyRule",
    "PublicSettings",
    "RegistrationResult",
    "Role",
    "RoleClassification",
]
