"""
Login Flow Controller.

Drives the login screen:

    IDLE -> SUBMITTING -> SUCCESS
                       -> FAILURE   (the user may submit again)

Sits between the UI and ``SessionResolver`` so that ``LoginView``
remains a thin form handler.  All methods return typed results
(``AuthResult``, ``RegistrationResult``, ``PasswordChangeResult``);
the UI never inspects raw exceptions.

Also owns the two other password-bearing forms, household
registration and password change, because both share the password
policy check that must pass before anything is sent.
"""

from __future__ import annotations

import re
import sqlite3
import threading
from typing import Optional

from familyaid.api_client import ApiClient, ApiError, ApiTimeoutError, ApiTransportError
from familyaid.auth_guard import AuthenticationError
from familyaid.logger import StructuredLogger
from familyaid.models.auth_models import (
    AuthResult,
    LoginCredentials,
    LoginFailure,
    PasswordChangeResult,
    RegistrationResult,
)
from familyaid.models.enums import LoginFailureKind, LoginState, LoginType, Role
from familyaid.models.household import HouseholdRegistration
from familyaid.models.identity import Identity
from familyaid.services.app_settings_service import AppSettingsService
from familyaid.services.base_service import BaseService
from familyaid.services.household_service import HouseholdService
from familyaid.services.login_errors import classify_login_error, failure_message
from familyaid.services.password_policy import violation_messages
from familyaid.services.role_classifier import default_dashboard
from familyaid.services.session_resolver import SessionResolver
from familyaid.utils.audit import log_audit_event


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_PASSWORD_PATH: str = "/api/user/password"

_IDENTITY_NUMBER_RE: re.Pattern[str] = re.compile(r"[0-9]{9}")

_REQUIRED_REGISTRATION_FIELDS: dict[str, str] = {
    "husband_name": "Name is required.",
    "husband_birth_date": "Birth date is required.",
    "husband_job": "Occupation is required.",
    "primary_phone": "Mobile number is required.",
}

_MISSING_IDENTIFIER: dict[LoginType, str] = {
    LoginType.HEAD: "Identity number is required.",
    LoginType.ADMIN: "Username is required.",
    LoginType.ROOT: "Username is required.",
}


class LoginInProgressError(RuntimeError):
    """Raised when a login is submitted while another is still running."""


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class LoginFlowController(BaseService):
    """Login, registration and password change for the auth screens.

    Parameters
    ----------
    api:
        REST client, used directly only for the password change.
    resolver:
        The single writer of the cached identity.
    households:
        Household lookups (welcome name) and registration.
    settings:
        Source of the password policy currently in force.
    logger:
        Structured JSON logger for audit-grade logging.
    audit_conn:
        Optional SQLite connection for persisting audit events.
    """

    def __init__(
        self,
        api: ApiClient,
        resolver: SessionResolver,
        households: HouseholdService,
        settings: AppSettingsService,
        logger: StructuredLogger,
        audit_conn: Optional[sqlite3.Connection] = None,
    ) -> None:
        super().__init__(logger)
        self._api: ApiClient = api
        self._resolver: SessionResolver = resolver
        self._households: HouseholdService = households
        self._settings: AppSettingsService = settings
        self._audit_conn: Optional[sqlite3.Connection] = audit_conn
        self._state_lock: threading.Lock = threading.Lock()
        self._state: LoginState = LoginState.IDLE
        self._last_failure: Optional[LoginFailure] = None

    # ==================================================================
    # State
    # ==================================================================

    @property
    def state(self) -> LoginState:
        with self._state_lock:
            return self._state

    @property
    def last_failure(self) -> Optional[LoginFailure]:
        with self._state_lock:
            return self._last_failure

    def reset(self) -> None:
        """Return to ``IDLE`` unless a submission is running."""
        with self._state_lock:
            if self._state is not LoginState.SUBMITTING:
                self._state = LoginState.IDLE

    def _begin(self) -> None:
        with self._state_lock:
            if self._state is LoginState.SUBMITTING:
                raise LoginInProgressError("A login attempt is already in progress.")
            self._state = LoginState.SUBMITTING
            self._last_failure = None

    def _finish(self, failure: Optional[LoginFailure]) -> None:
        with self._state_lock:
            self._state = LoginState.FAILURE if failure is not None else LoginState.SUCCESS
            self._last_failure = failure

    # ==================================================================
    # Login
    # ==================================================================

    def submit(
        self,
        identifier: str,
        password: str,
        login_type: LoginType = LoginType.HEAD,
    ) -> AuthResult:
        """Attempt a login.

        Every login type sends the same ``{username, password}`` body;
        *login_type* only changes how a missing identifier is reported.
        No retry: the user resubmits.

        Parameters
        ----------
        identifier:
            Identity number (household heads) or username.
        password:
            The raw password.  Never logged.
        login_type:
            Which form variant the user picked.

        Returns
        -------
        AuthResult
            On success, ``redirect_to`` is the role's dashboard and
            ``welcome_message`` is ready unless the account is a
            household head (see ``welcome_message()``).

        Raises
        ------
        LoginInProgressError
            If called while a previous submission is still running.
        """
        self._begin()

        identifier = identifier.strip()
        if not identifier or not password:
            message = (
                _MISSING_IDENTIFIER[login_type] if not identifier else "Password is required."
            )
            failure = LoginFailure(
                kind=LoginFailureKind.VALIDATION_ERROR, server_message=message,
            )
            self._finish(failure)
            return AuthResult(success=False, failure=failure, error_message=message)

        try:
            identity = self._resolver.login(
                LoginCredentials(username=identifier, password=password),
            )
        except Exception as exc:
            failure = classify_login_error(exc)
            self._logger.warning(
                "Login failed (%s): %s",
                failure.kind,
                exc,
                extra={"event": "LOGIN_FAILED", "login_type": str(login_type)},
            )
            self._finish(failure)
            return AuthResult(
                success=False,
                failure=failure,
                error_message=failure_message(failure),
            )

        self._finish(None)
        self._logger.info(
            "User authenticated: %s (role: %s)",
            identity.username,
            identity.role,
            extra={"event": "LOGIN", "user_id": identity.id},
        )
        welcome: Optional[str] = None
        if identity.role != Role.HEAD:
            welcome = _greeting(identity.username)
        return AuthResult(
            success=True,
            identity=identity,
            redirect_to=default_dashboard(identity),
            welcome_message=welcome,
        )

    def welcome_message(self, identity: Identity) -> str:
        """Greeting for *identity*.

        Household heads are greeted by the registered household name,
        which takes a second lookup; any failure of that lookup falls
        back to the username.
        """
        if identity.role != Role.HEAD:
            return _greeting(identity.username)
        try:
            household = self._households.get_current_household()
        except (ApiError, AuthenticationError) as exc:
            self._logger.info("Household lookup for welcome failed: %s", exc)
            household = None
        name = household.husband_name.strip() if household is not None else ""
        return _greeting(name or identity.username)

    # ==================================================================
    # Registration
    # ==================================================================

    def validate_registration(self, form: HouseholdRegistration) -> dict[str, list[str]]:
        """Per-field errors for *form*; empty means it may be submitted."""
        errors: dict[str, list[str]] = {}

        for field, message in _REQUIRED_REGISTRATION_FIELDS.items():
            if not getattr(form, field).strip():
                errors.setdefault(field, []).append(message)

        if not _IDENTITY_NUMBER_RE.fullmatch(form.husband_id.strip()):
            errors.setdefault("husband_id", []).append(
                "Identity number must be exactly 9 digits.",
            )

        password_errors = violation_messages(form.password, self._settings.password_policy)
        if password_errors:
            errors["password"] = password_errors

        if form.password != form.confirm_password:
            errors.setdefault("confirm_password", []).append("Passwords do not match.")

        return errors

    def register(self, form: HouseholdRegistration) -> RegistrationResult:
        """Register a household and its head account.

        Nothing is sent while any field is invalid.  If the server
        answers with the new account, it becomes the cached identity.
        """
        field_errors = self.validate_registration(form)
        if field_errors:
            return RegistrationResult(success=False, field_errors=field_errors)

        try:
            payload = self._households.register_family(form)
        except ApiError as exc:
            self._logger.warning(
                "Household registration failed: %s", exc,
                extra={"event": "REGISTER_FAILED"},
            )
            return RegistrationResult(success=False, error_message=_request_error(exc))

        identity = self._resolver.apply_registration(payload)
        log_audit_event(
            logger=self._logger,
            action="REGISTER",
            entity_type="Household",
            entity_id=form.husband_id.strip(),
            user_id=identity.id if identity is not None else "anonymous",
            conn=self._audit_conn,
        )
        return RegistrationResult(success=True, identity=identity)

    # ==================================================================
    # Password change
    # ==================================================================

    def change_password(
        self,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> PasswordChangeResult:
        """Change the logged-in account's password.

        The policy applies to *new_password* only; the current password
        is whatever it was when it was set.
        """
        identity = self._resolver.identity
        if identity is None:
            return PasswordChangeResult(
                success=False, error_message="Please log in to change your password.",
            )

        field_errors: dict[str, list[str]] = {}
        if not current_password:
            field_errors["current_password"] = ["Current password is required."]
        if new_password != confirm_password:
            field_errors["confirm_password"] = ["The new passwords do not match."]
        policy_errors = violation_messages(new_password, self._settings.password_policy)
        if policy_errors:
            field_errors["new_password"] = policy_errors
        if field_errors:
            return PasswordChangeResult(success=False, field_errors=field_errors)

        try:
            self._api.post_json(
                _PASSWORD_PATH,
                {"currentPassword": current_password, "newPassword": new_password},
            )
        except ApiError as exc:
            self._logger.warning(
                "Password change failed for user %s: %s", identity.id, exc,
                extra={"event": "PASSWORD_CHANGE_FAILED"},
            )
            return PasswordChangeResult(success=False, error_message=_request_error(exc))

        log_audit_event(
            logger=self._logger,
            action="PASSWORD_CHANGE",
            entity_type="Account",
            entity_id=identity.id,
            user_id=identity.id,
            conn=self._audit_conn,
        )
        return PasswordChangeResult(success=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _greeting(name: str) -> str:
    return f"Welcome, {name}"


def _request_error(exc: ApiError) -> str:
    """User-facing text for a failed non-login request."""
    if isinstance(exc, ApiTimeoutError):
        return "The server did not respond in time. Please try again."
    if isinstance(exc, ApiTransportError):
        return "Cannot reach the server. Check your internet connection."
    return exc.message or "The request could not be completed. Please try again."
