"""Application Host Shell.

The top-level ``CTk`` window.  Every screen change goes through
``navigate(path)``:

1. The maintenance gate may replace the page with the holding view.
2. The route table resolves the path (unknown paths show not-found).
3. The route guard decides between spinner, redirect and render.
4. Rendered routes appear in the content area next to the sidebar;
   the login view and the holding page take the whole window.

All dependencies are injected via the constructor.  The shell contains
no business logic: identity lives in ``SessionResolver``, access rules
in ``RouteGuard`` and ``MaintenanceGate``, and forms in the views.
Network calls run on daemon threads and report back through
``self.after(0, ...)``.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

import customtkinter as ctk

from familyaid import __version__ as _APP_VERSION
from familyaid.api_client import ApiClient
from familyaid.auth import SessionManager
from familyaid.config import AppConfig
from familyaid.database import LocalStore
from familyaid.logger import StructuredLogger
from familyaid.models.auth_models import AuthResult, RegistrationResult
from familyaid.models.enums import GuardOutcome
from familyaid.models.identity import Identity
from familyaid.services import ServiceContainer
from familyaid.services.role_classifier import (
    ADMIN_DASHBOARD,
    HOUSEHOLD_DASHBOARD,
    can_manage_users,
    classify,
    default_dashboard,
)
from familyaid.services.route_guard import LOGIN_PATH
from familyaid.ui.login_view import LoginView
from familyaid.ui.route_registry import USERS_PATH, RouteEntry, RouteRegistry
from familyaid.ui.sidebar import SidebarNav
from familyaid.ui.theme import (
    ACCENT_PRIMARY,
    CONTENT_BG,
    FONT_BODY,
    LOGIN_WINDOW_HEIGHT,
    LOGIN_WINDOW_WIDTH,
    MAIN_WINDOW_HEIGHT,
    MAIN_WINDOW_WIDTH,
    PADDING_MD,
    TEXT_LIGHT,
)
from familyaid.ui.views.status_views import (
    MaintenanceView,
    NotFoundView,
    PlaceholderView,
    SpinnerView,
)

_SESSION_CHECK_INTERVAL_MS: int = 60_000  # 60 seconds
_FLASH_DURATION_MS: int = 4_000

ViewBuilder = Callable[[ctk.CTkBaseClass], ctk.CTkFrame]


class AppShell(ctk.CTk):
    """Host Shell: the main application window.

    Lifecycle
    ---------
    1. On boot: shows the spinner and resolves the identity, the public
       settings and the full settings on a background thread.
    2. Every session write re-evaluates the current path, so login,
       logout and background refreshes all land on the right screen.
    3. The identity is revalidated every 60 s; the public settings are
       polled when ``SETTINGS_REFRESH_INTERVAL_S`` is set.
    4. Logout clears the session and returns to the login view.

    Parameters
    ----------
    config:
        Application configuration.
    api:
        REST client; closed with the window.
    store:
        Local SQLite store; closed with the window.
    session:
        Shared identity record.
    services:
        Fully-wired service container.
    registry:
        Route table populated before shell launch.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        config: AppConfig,
        api: ApiClient,
        store: LocalStore,
        session: SessionManager,
        services: ServiceContainer,
        registry: RouteRegistry,
        logger: StructuredLogger,
    ) -> None:
        super().__init__()

        self._config = config
        self._api = api
        self._store = store
        self._session = session
        self._services = services
        self._registry = registry
        self._logger = logger

        self._resolver = services["session_resolver"]
        self._settings = services["app_settings_service"]
        self._guard = services["route_guard"]
        self._gate = services["maintenance_gate"]
        self._login_flow = services["login_flow"]

        self._current_path: str = "/"
        self._view: Optional[ctk.CTkFrame] = None
        self._view_key: Optional[tuple[object, ...]] = None
        self._sidebar: Optional[SidebarNav] = None
        self._sidebar_key: Optional[tuple[object, ...]] = None
        self._content_container: Optional[ctk.CTkFrame] = None
        self._flash_label: Optional[ctk.CTkLabel] = None

        self._retry_job: Optional[str] = None
        self._session_check_job: Optional[str] = None
        self._settings_poll_job: Optional[str] = None

        self.title(f"FamilyAid {_APP_VERSION}")
        ctk.set_appearance_mode("light")
        ctk.set_default_color_theme("blue")
        self.geometry(f"{MAIN_WINDOW_WIDTH}x{MAIN_WINDOW_HEIGHT}")
        self.minsize(LOGIN_WINDOW_WIDTH, LOGIN_WINDOW_HEIGHT)
        self.protocol("WM_DELETE_WINDOW", self._on_close)

        self._unsubscribe = session.subscribe(
            lambda _identity: self.after(0, self._reevaluate),
        )
        self._remove_logout_listener = self._resolver.add_logout_listener(
            lambda: self.after(0, self.navigate, LOGIN_PATH),
        )

        self.navigate("/")
        self._mount()

    # ==================================================================
    # Navigation
    # ==================================================================

    def navigate(self, path: str) -> None:
        """Show whatever *path* should show right now."""
        self._cancel_retry()
        self._current_path = path
        identity = self._session.identity

        if self._gate.is_blocked(identity, path):
            self._show(
                ("maintenance",),
                lambda parent: MaintenanceView(parent, self._settings.public.site_title),
                in_shell=False,
            )
            return

        matched = self._registry.match(path)
        if matched is None:
            self._show_not_found(path)
            return
        entry, params = matched

        decision = self._guard.evaluate(entry, params)
        if decision.outcome is GuardOutcome.SPINNER:
            self._show(("spinner",), SpinnerView, in_shell=identity is not None)
            if decision.retry_after_s is not None:
                delay_ms = max(1, int(decision.retry_after_s * 1000))
                self._retry_job = self.after(delay_ms, self._reevaluate)
            return
        if decision.outcome is GuardOutcome.REDIRECT_LOGIN:
            self.navigate(decision.redirect_to or LOGIN_PATH)
            return
        if decision.outcome is GuardOutcome.REDIRECT_NOT_FOUND:
            self._show_not_found(path)
            return

        self._render(entry, decision.params, identity)

    def _reevaluate(self) -> None:
        self._retry_job = None
        self.navigate(self._current_path)

    def _render(
        self,
        entry: RouteEntry,
        params: dict[str, str],
        identity: Optional[Identity],
    ) -> None:
        if entry.path == LOGIN_PATH:
            if identity is not None:
                self.navigate(default_dashboard(identity))
                return
            self._show(("login",), self._build_login_view, in_shell=False)
            return

        if entry.redirect is not None and identity is not None:
            self.navigate(entry.redirect(identity))
            return

        if entry.path == USERS_PATH and not can_manage_users(identity):
            self._show_not_found(self._current_path)
            return

        if identity is not None and entry.menu_group is not None and classify(identity).is_dual_role:
            # Dual-role accounts follow the side of the menu entry they opened.
            self._resolver.choose_dashboard("head" if entry.menu_group == "household" else "admin")

        key = ("route", self._current_path, _identity_key(identity))
        if entry.factory is not None:
            factory = entry.factory
            self._show(key, lambda parent: factory(parent, params))
        else:
            self._show(key, lambda parent: PlaceholderView(parent, entry.title, params))

        if self._sidebar is not None:
            self._sidebar.set_active(entry.path)
        self.title(f"FamilyAid {_APP_VERSION}  ·  {entry.title}")

    def _show_not_found(self, path: str) -> None:
        self._logger.info("No page for %s.", path)
        self._show(
            ("not_found", path),
            lambda parent: NotFoundView(parent, on_home=lambda: self.navigate("/")),
            in_shell=self._session.identity is not None,
        )

    # ==================================================================
    # Layout
    # ==================================================================

    def _show(self, key: tuple[object, ...], builder: ViewBuilder, in_shell: bool = True) -> None:
        """Replace the current view unless *key* is already on screen."""
        identity = self._session.identity
        in_shell = in_shell and identity is not None
        key = (in_shell, *key)
        if key == self._view_key and self._view is not None and self._view.winfo_exists():
            if not in_shell or self._sidebar_key == self._shell_key(identity):
                return

        if self._view is not None:
            self._view.destroy()
            self._view = None
            self._view_key = None

        if in_shell:
            self._ensure_main_shell(identity)
            parent: ctk.CTkBaseClass = self._content_container
        else:
            self._clear_main_shell()
            parent = self

        self._view = builder(parent)
        self._view.pack(fill="both", expand=True)
        self._view_key = key

    def _ensure_main_shell(self, identity: Identity) -> None:
        """Build the sidebar and content area, rebuilding on identity change."""
        key = self._shell_key(identity)
        if self._sidebar is not None and self._sidebar_key == key:
            return

        self._clear_main_shell()
        dashboard = self._resolver.current_dashboard
        self._sidebar = SidebarNav(
            parent=self,
            identity=identity,
            registry=self._registry,
            dashboard=dashboard,
            on_navigate=self.navigate,
            on_switch_dashboard=self._switch_dashboard,
            on_logout=self._handle_logout,
            logger=self._logger,
        )
        self._sidebar.pack(side="left", fill="y")
        self._sidebar_key = key

        self._content_container = ctk.CTkFrame(self, fg_color=CONTENT_BG)
        self._content_container.pack(side="top", fill="both", expand=True)

    def _shell_key(self, identity: Identity) -> tuple[object, ...]:
        return (_identity_key(identity), self._resolver.current_dashboard)

    def _clear_main_shell(self) -> None:
        """Destroy the sidebar, the content area and the view inside it."""
        if self._sidebar is None and self._content_container is None:
            return
        if self._view is not None:
            self._view.destroy()
            self._view = None
            self._view_key = None
        if self._sidebar is not None:
            self._sidebar.destroy()
            self._sidebar = None
            self._sidebar_key = None
        if self._content_container is not None:
            self._content_container.destroy()
            self._content_container = None

    def _flash(self, message: str) -> None:
        """Briefly show *message* across the top of the window."""
        if self._flash_label is not None:
            self._flash_label.destroy()
        label = ctk.CTkLabel(
            self,
            text=message,
            font=FONT_BODY,
            fg_color=ACCENT_PRIMARY,
            text_color=TEXT_LIGHT,
            corner_radius=6,
            padx=PADDING_MD,
            pady=6,
        )
        label.place(relx=0.5, y=PADDING_MD, anchor="n")
        self._flash_label = label

        def hide() -> None:
            if label.winfo_exists():
                label.destroy()
            if self._flash_label is label:
                self._flash_label = None

        self.after(_FLASH_DURATION_MS, hide)

    # ==================================================================
    # Login view
    # ==================================================================

    def _build_login_view(self, parent: ctk.CTkBaseClass) -> LoginView:
        return LoginView(
            parent=parent,
            login_flow=self._login_flow,
            settings=self._settings.settings,
            on_login_success=self._handle_login_success,
            on_registered=self._handle_registered,
            logger=self._logger,
        )

    def _handle_login_success(self, result: AuthResult) -> None:
        identity = result.identity
        self._login_flow.reset()
        self.navigate(result.redirect_to or "/")
        if result.welcome_message:
            self._flash(result.welcome_message)
        elif identity is not None and result.needs_household_lookup:
            def lookup() -> None:
                message = self._login_flow.welcome_message(identity)
                self.after(0, self._flash, message)

            threading.Thread(target=lookup, name="welcome-lookup", daemon=True).start()

    def _handle_registered(self, result: RegistrationResult) -> None:
        if result.identity is not None:
            self.navigate(default_dashboard(result.identity))
            self._flash("Registration complete.")
        elif isinstance(self._view, LoginView):
            self._view.show_registration_success()

    # ==================================================================
    # Sidebar actions
    # ==================================================================

    def _switch_dashboard(self, dashboard: str) -> None:
        side = "head" if dashboard == "head" else "admin"
        self._resolver.choose_dashboard(side)
        self.navigate(HOUSEHOLD_DASHBOARD if side == "head" else ADMIN_DASHBOARD)

    def _handle_logout(self) -> None:
        """Log out on a background thread; the logout listener navigates."""
        threading.Thread(target=self._resolver.logout, name="logout", daemon=True).start()

    # ==================================================================
    # Background refresh
    # ==================================================================

    def _mount(self) -> None:
        """Resolve identity and settings once, then start the timers."""

        def load() -> None:
            self._settings.refresh_public()
            self._resolver.resolve()
            self._settings.refresh()
            self.after(0, self._on_mounted)

        threading.Thread(target=load, name="mount", daemon=True).start()

    def _on_mounted(self) -> None:
        self._reevaluate()
        self._session_check_job = self.after(_SESSION_CHECK_INTERVAL_MS, self._check_session)
        if self._config.SETTINGS_REFRESH_INTERVAL_S > 0:
            self._schedule_settings_poll()

    def _check_session(self) -> None:
        """Revalidate the cached identity on a background thread."""

        def refresh() -> None:
            self._resolver.refresh()
            self.after(0, self._reevaluate)

        threading.Thread(target=refresh, name="session-refresh", daemon=True).start()
        self._session_check_job = self.after(_SESSION_CHECK_INTERVAL_MS, self._check_session)

    def _schedule_settings_poll(self) -> None:
        interval_ms = int(self._config.SETTINGS_REFRESH_INTERVAL_S * 1000)
        self._settings_poll_job = self.after(interval_ms, self._poll_settings)

    def _poll_settings(self) -> None:
        def refresh() -> None:
            before = self._settings.maintenance
            public = self._settings.refresh_public()
            if public.maintenance != before:
                self.after(0, self._reevaluate)

        threading.Thread(target=refresh, name="settings-poll", daemon=True).start()
        self._schedule_settings_poll()

    # ==================================================================
    # Window close
    # ==================================================================

    def _cancel_retry(self) -> None:
        if self._retry_job is not None:
            self.after_cancel(self._retry_job)
            self._retry_job = None

    def _on_close(self) -> None:
        """Cancel timers, release the connections, destroy the window."""
        self._cancel_retry()
        for job in (self._session_check_job, self._settings_poll_job):
            if job is not None:
                self.after_cancel(job)
        self._session_check_job = None
        self._settings_poll_job = None
        self._unsubscribe()
        self._remove_logout_listener()
        self._api.close()
        self._store.close()
        self.destroy()


def _identity_key(identity: Optional[Identity]) -> tuple[object, ...]:
    if identity is None:
        return ()
    return (identity.id, identity.role, identity.username)
