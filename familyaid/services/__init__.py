"""
Business Logic Services Package.

Every auth, settings and access-control decision the client makes lives
here.  Services depend on the REST client and the local store for data
and on ``SessionManager`` for the current identity.

The ``create_services()`` factory wires them together, returning a
typed dict that the UI layer can consume without knowing the internal
dependency graph.
"""

from __future__ import annotations

from typing import TypedDict

from familyaid.api_client import ApiClient
from familyaid.auth import SessionManager
from familyaid.config import AppConfig
from familyaid.database import LocalStore
from familyaid.logger import get_logger
from familyaid.services.app_settings_service import AppSettingsService
from familyaid.services.household_service import HouseholdService
from familyaid.services.login_flow import LoginFlowController
from familyaid.services.maintenance_gate import MaintenanceGate
from familyaid.services.route_guard import RouteGuard
from familyaid.services.session_resolver import SessionResolver


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    session_resolver: SessionResolver
    household_service: HouseholdService
    app_settings_service: AppSettingsService
    login_flow: LoginFlowController
    maintenance_gate: MaintenanceGate
    route_guard: RouteGuard


def create_services(
    api: ApiClient,
    store: LocalStore,
    config: AppConfig,
    session: SessionManager,
) -> ServiceContainer:
    """
    Wire all services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup and passes the
    returned dict to the app shell.

    Args:
        api: REST client bound to ``config.API_BASE_URL``.
        store: Local SQLite store with the schema initialised.
        config: Application configuration.
        session: The shared identity record.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("services")

    # ------------------------------------------------------------------
    # 1. Leaf services
    # ------------------------------------------------------------------
    session_resolver = SessionResolver(
        api=api,
        session=session,
        logger=logger,
        stale_after_s=config.IDENTITY_STALE_AFTER_S,
        retries=config.IDENTITY_FETCH_RETRIES,
        audit_conn=store.sqlite,
    )
    household_service = HouseholdService(api=api, session=session, logger=logger)
    app_settings_service = AppSettingsService(
        api=api,
        store=store,
        session=session,
        logger=logger,
    )

    # ------------------------------------------------------------------
    # 2. Orchestration services
    # ------------------------------------------------------------------
    login_flow = LoginFlowController(
        api=api,
        resolver=session_resolver,
        households=household_service,
        settings=app_settings_service,
        logger=logger,
        audit_conn=store.sqlite,
    )

    # ------------------------------------------------------------------
    # 3. Navigation gates
    # ------------------------------------------------------------------
    maintenance_gate = MaintenanceGate(settings=app_settings_service)
    route_guard = RouteGuard(session=session, settle_delay_s=config.route_settle_delay_s)

    return ServiceContainer(
        session_resolver=session_resolver,
        household_service=household_service,
        app_settings_service=app_settings_service,
        login_flow=login_flow,
        maintenance_gate=maintenance_gate,
        route_guard=route_guard,
    )
