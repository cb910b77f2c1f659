"""
Session Resolver.

The only writer of the cached identity held by ``SessionManager``.
Fetches ``GET /api/user`` with a staleness window and a bounded retry,
writes the identity returned by a successful login, and clears the
cache on logout.

Every read from the server goes through the version stamp on the
session: a refresh snapshots the version before its round trip and
commits only if no login or logout was written in the meantime.
"""

from __future__ import annotations

import sqlite3
from typing import Callable, Literal, Optional

from pydantic import ValidationError

from familyaid.api_client import ApiClient, ApiError, ApiUnauthorizedError, JsonBody
from familyaid.auth import SessionManager
from familyaid.logger import StructuredLogger
from familyaid.models.auth_models import LoginCredentials
from familyaid.models.identity import Identity
from familyaid.services.base_service import BaseService
from familyaid.utils.audit import log_audit_event

_IDENTITY_PATH: str = "/api/user"
_LOGIN_PATH: str = "/api/login"
_LOGOUT_PATH: str = "/api/logout"

DashboardContext = Literal["admin", "head"]


class IdentityPayloadError(ApiError):
    """The server answered 2xx with something that is not an identity."""


def parse_identity(payload: JsonBody) -> Optional[Identity]:
    """Turn an identity-endpoint body into an ``Identity``.

    An empty body means "nobody is logged in".  Registration responses
    may wrap the account as ``{"user": {...}}``; both shapes parse.

    Raises
    ------
    IdentityPayloadError
        If a non-empty body does not describe an account.
    """
    if not payload:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("user"), dict):
        payload = payload["user"]
    try:
        return Identity.model_validate(payload)
    except ValidationError as exc:
        raise IdentityPayloadError(
            "The server returned an identity the client cannot read.",
            details={"errors": exc.error_count()},
        ) from exc


class SessionResolver(BaseService):
    """Maintains the client's belief about who is logged in.

    Parameters
    ----------
    api:
        REST client; its cookie jar carries the session.
    session:
        The shared identity record.
    logger:
        Structured logger.
    stale_after_s:
        A resolved identity younger than this is served from cache.
    retries:
        Automatic retries of the identity fetch on non-401 failures.
    audit_conn:
        Optional SQLite connection for persisting audit events.
    """

    def __init__(
        self,
        api: ApiClient,
        session: SessionManager,
        logger: StructuredLogger,
        stale_after_s: float = 300.0,
        retries: int = 1,
        audit_conn: Optional[sqlite3.Connection] = None,
    ) -> None:
        super().__init__(logger)
        self._api: ApiClient = api
        self._session: SessionManager = session
        self._stale_after_s: float = stale_after_s
        self._retries: int = retries
        self._audit_conn: Optional[sqlite3.Connection] = audit_conn
        self._logout_listeners: list[Callable[[], None]] = []
        self._dashboard: DashboardContext = "admin"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def identity(self) -> Optional[Identity]:
        return self._session.identity

    @property
    def is_loading(self) -> bool:
        return self._session.is_loading

    @property
    def error(self) -> Optional[Exception]:
        return self._session.error

    # ------------------------------------------------------------------
    # Identity fetch
    # ------------------------------------------------------------------

    def resolve(self) -> Optional[Identity]:
        """Mount-time resolution.

        Runs one refresh and, if loading ends with the identity still
        unresolved, exactly one more.  Covers a session cookie that was
        set just after the first request went out.
        """
        identity = self.refresh()
        if not self._session.is_resolved:
            self._logger.info("Identity still unresolved after load; refreshing once more.")
            identity = self.refresh(force=True)
        return identity

    def refresh(self, force: bool = False) -> Optional[Identity]:
        """Re-read the identity unless the cached one is still fresh.

        Failures are recorded on the session (``error``) and never
        raised; a previously cached identity is kept.
        """
        if not force and self._session.is_fresh(self._stale_after_s):
            return self._session.identity

        base_version = self._session.begin_loading()
        error: Optional[ApiError] = None
        committed = True
        try:
            identity = self._fetch_identity()
            committed = self._session.write_if_current(identity, base_version)
        except ApiError as exc:
            self._logger.warning("Identity fetch failed: %s", exc)
            error = exc
        finally:
            self._session.finish_loading(error=error)

        if not committed:
            self._logger.debug(
                "Discarded identity refresh: a newer write landed while it was in flight.",
            )
        return self._session.identity

    def _fetch_identity(self) -> Optional[Identity]:
        attempts = self._retries + 1
        last_error: Optional[ApiError] = None
        for attempt in range(1, attempts + 1):
            try:
                payload = self._api.get_json(_IDENTITY_PATH)
            except ApiUnauthorizedError:
                return None
            except ApiError as exc:
                last_error = exc
                if attempt < attempts:
                    self._logger.info(
                        "Identity fetch attempt %d/%d failed (%s); retrying.",
                        attempt, attempts, exc,
                    )
                continue
            return parse_identity(payload)

        assert last_error is not None
        raise last_error

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def login(self, credentials: LoginCredentials) -> Identity:
        """Submit *credentials* and cache the returned identity.

        Raises
        ------
        ApiError
            Unchanged, for the caller to classify.  The cached identity
            is left untouched on failure.
        """
        try:
            payload = self._api.post_json(_LOGIN_PATH, credentials.model_dump())
            identity = parse_identity(payload)
            if identity is None:
                raise IdentityPayloadError("Login succeeded but no account was returned.")
        except ApiError as exc:
            log_audit_event(
                logger=self._logger,
                action="LOGIN_FAILED",
                entity_type="Account",
                entity_id=credentials.username,
                user_id="anonymous",
                details={"status_code": exc.status_code, "kind": exc.kind},
                conn=self._audit_conn,
            )
            raise

        self._session.write(identity)
        self._dashboard = "admin"
        log_audit_event(
            logger=self._logger,
            action="LOGIN",
            entity_type="Account",
            entity_id=identity.id,
            user_id=identity.id,
            details={"role": str(identity.role)},
            conn=self._audit_conn,
        )
        return identity

    def apply_registration(self, payload: JsonBody) -> Optional[Identity]:
        """Cache the account carried by a registration response, if any."""
        try:
            identity = parse_identity(payload)
        except IdentityPayloadError:
            identity = None
        if identity is not None:
            self._session.write(identity)
        return identity

    def logout(self) -> None:
        """End the session.  Idempotent.

        The server call is best effort: its failure is logged, and the
        local cache is cleared regardless.  Logout listeners run last.
        """
        previous = self._session.identity
        try:
            self._api.post_json(_LOGOUT_PATH)
        except ApiError as exc:
            self._logger.warning("Server logout failed; clearing local session anyway: %s", exc)

        self._session.clear()
        self._dashboard = "admin"
        if previous is not None:
            log_audit_event(
                logger=self._logger,
                action="LOGOUT",
                entity_type="Account",
                entity_id=previous.id,
                user_id=previous.id,
                conn=self._audit_conn,
            )
        for listener in list(self._logout_listeners):
            listener()

    def add_logout_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Run *listener* after every logout; returns a remover."""
        self._logout_listeners.append(listener)

        def remove() -> None:
            if listener in self._logout_listeners:
                self._logout_listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------
    # Dual-role dashboard context
    # ------------------------------------------------------------------

    @property
    def current_dashboard(self) -> DashboardContext:
        """Which side a dual-role account is currently working on."""
        return self._dashboard

    def choose_dashboard(self, dashboard: DashboardContext) -> None:
        self._dashboard = dashboard

