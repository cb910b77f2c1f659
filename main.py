"""
FamilyAid Desktop Client Entry Point.

Bootstraps the entire dependency graph via constructor injection,
initialises the local SQLite schema, and launches the CustomTkinter
GUI.  Every subsystem is wired here; there are no module-level globals.

Usage::

    python main.py
"""

from __future__ import annotations

import atexit
import sys
import traceback
from typing import Optional

from familyaid.api_client import ApiClient
from familyaid.auth import SessionManager
from familyaid.config import get_config
from familyaid.database import LocalStore
from familyaid.logger import StructuredLogger, get_logger
from familyaid.schema import initialize_schema
from familyaid.services import ServiceContainer, create_services
from familyaid.services.role_classifier import default_dashboard
from familyaid.ui.app_shell import AppShell
from familyaid.ui.route_registry import RouteRegistry, ViewFactory, register_default_routes
from familyaid.ui.views.profile_view import ProfileView
from familyaid.ui.views.settings_view import SettingsView


def _view_factories(
    session: SessionManager,
    services: ServiceContainer,
) -> dict[str, ViewFactory]:
    """Screens this client implements; every other route is a placeholder."""
    return {
        "/dashboard/profile": lambda parent, params: ProfileView(
            parent=parent,
            identity=session.identity,
            login_flow=services["login_flow"],
        ),
        "/admin/settings": lambda parent, params: SettingsView(
            parent=parent,
            app_settings=services["app_settings_service"],
            logger=get_logger("settings"),
        ),
    }


def main() -> None:
    """Application entry point: wire dependencies and launch the GUI."""
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting FamilyAid client...")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Local store (settings fallback copy + audit log)
    # ------------------------------------------------------------------
    store = LocalStore(
        sqlite_path=config.LOCAL_DB_PATH,
        logger=StructuredLogger(name="database"),
    )
    # LocalStore.close() is idempotent; this only covers unclean exits.
    atexit.register(store.close)

    # ------------------------------------------------------------------
    # 3. SQLite schema initialisation (idempotent)
    # ------------------------------------------------------------------
    initialize_schema(store.sqlite, StructuredLogger(name="schema"))

    # ------------------------------------------------------------------
    # 4. REST client and session record
    # ------------------------------------------------------------------
    api = ApiClient(
        base_url=config.API_BASE_URL,
        timeout_s=config.REQUEST_TIMEOUT_S,
        logger=StructuredLogger(name="api"),
    )
    atexit.register(api.close)
    session = SessionManager()

    # ------------------------------------------------------------------
    # 5. Service container (single composition root)
    # ------------------------------------------------------------------
    services = create_services(api=api, store=store, config=config, session=session)

    # ------------------------------------------------------------------
    # 6. Route table
    # ------------------------------------------------------------------
    factories = _view_factories(session, services)

    def factory_for(path: str) -> Optional[ViewFactory]:
        return factories.get(path)

    registry = register_default_routes(
        RouteRegistry(logger=get_logger("routes")),
        factories=factory_for,
        index_redirect=default_dashboard,
    )

    # ------------------------------------------------------------------
    # 7. Launch the GUI (blocks until window closes)
    # ------------------------------------------------------------------
    logger.info("Launching GUI against %s ...", config.API_BASE_URL)
    app = AppShell(
        config=config,
        api=api,
        store=store,
        session=session,
        services=services,
        registry=registry,
        logger=get_logger("ui"),
    )
    try:
        app.mainloop()
    finally:
        api.close()
        store.close()
        logger.info("FamilyAid client shut down.")


def _show_fatal_error(exc: BaseException) -> None:
    """Display a fatal-error dialog so double-click users get feedback.

    Uses ``tkinter.messagebox`` rather than CustomTkinter so the dialog
    works even when CTk initialisation itself is the thing that failed.
    """
    detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    try:
        import tkinter
        from tkinter import messagebox

        root = tkinter.Tk()
        root.withdraw()
        messagebox.showerror(
            title="FamilyAid: Fatal Error",
            message=(
                "The application encountered an unexpected error and "
                "cannot continue.\n\n"
                f"{type(exc).__name__}: {exc}"
            ),
            detail=detail,
        )
        root.destroy()
    except Exception:
        # Headless environment or missing Tcl/Tk.
        sys.stderr.write(f"FATAL: {type(exc).__name__}: {exc}\n{detail}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        _show_fatal_error(exc)
        sys.exit(1)
