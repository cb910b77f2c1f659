"""Sidebar Navigation Component.

Displays the routes the current account may open, the account's
identity, the dashboard switch for dual-role accounts, and a logout
button.  Follows the **Thin UI** rule: zero business logic.  Which
entries appear is decided by the route table and the role classifier;
all actions are delegated via injected callbacks.
"""

from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from familyaid.logger import StructuredLogger
from familyaid.models.identity import Identity
from familyaid.services.role_classifier import classify
from familyaid.ui.route_registry import RouteRegistry, visible_entries
from familyaid.ui.theme import (
    ACCENT_PRIMARY,
    FONT_BODY,
    FONT_SIDEBAR,
    FONT_SIDEBAR_ACTIVE,
    FONT_SMALL,
    LOGOUT_HOVER,
    LOGOUT_PRIMARY,
    PADDING_MD,
    PADDING_SM,
    SIDEBAR_ACTIVE,
    SIDEBAR_BG,
    SIDEBAR_HOVER,
    SIDEBAR_TEXT,
    SIDEBAR_WIDTH,
    TEXT_LIGHT,
)

_AVATAR_SIZE: int = 40
_PROFILE_PATH: str = "/dashboard/profile"

_ROLE_LABELS: dict[str, str] = {
    "head": "Household head",
    "admin": "Administrator",
    "root": "System administrator",
}


class _RouteButton(ctk.CTkButton):
    """Internal clickable sidebar entry for a single route."""

    def __init__(
        self,
        parent: ctk.CTkFrame,
        path: str,
        title: str,
        on_click: Callable[[str], None],
    ) -> None:
        self._path = path
        super().__init__(
            parent,
            text=f"  {title}",
            anchor="w",
            font=FONT_SIDEBAR,
            text_color=SIDEBAR_TEXT,
            fg_color="transparent",
            hover_color=SIDEBAR_HOVER,
            height=38,
            corner_radius=6,
            command=lambda: on_click(self._path),
        )

    @property
    def path(self) -> str:
        return self._path

    def set_active(self, active: bool) -> None:
        """Highlight or un-highlight this button."""
        if active:
            self.configure(fg_color=SIDEBAR_ACTIVE, font=FONT_SIDEBAR_ACTIVE)
        else:
            self.configure(fg_color="transparent", font=FONT_SIDEBAR)


class SidebarNav(ctk.CTkFrame):
    """Sidebar navigation panel for the app shell.

    Parameters
    ----------
    parent:
        The parent widget (typically the AppShell root).
    identity:
        The logged-in account; read only.
    registry:
        Route table the menu is built from.
    dashboard:
        ``"admin"`` or ``"head"``: the side a dual-role account is on.
    on_navigate:
        Called with a path when the user clicks an entry.
    on_switch_dashboard:
        Called with the other side when a dual-role account switches.
    on_logout:
        Called when the user clicks the Logout button.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTk,
        identity: Identity,
        registry: RouteRegistry,
        dashboard: str,
        on_navigate: Callable[[str], None],
        on_switch_dashboard: Callable[[str], None],
        on_logout: Callable[[], None],
        logger: StructuredLogger,
        display_name: Optional[str] = None,
    ) -> None:
        super().__init__(parent, width=SIDEBAR_WIDTH, fg_color=SIDEBAR_BG)
        self.pack_propagate(False)

        self._identity = identity
        self._registry = registry
        self._dashboard = dashboard
        self._on_navigate = on_navigate
        self._on_switch_dashboard = on_switch_dashboard
        self._on_logout = on_logout
        self._logger = logger
        self._display_name = display_name or identity.username

        self._buttons: dict[str, _RouteButton] = {}
        self._active_path: Optional[str] = None

        self._build_ui()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_active(self, path: str) -> None:
        """Highlight *path* and un-highlight the previous one."""
        if self._active_path and self._active_path in self._buttons:
            self._buttons[self._active_path].set_active(False)
        if path in self._buttons:
            self._buttons[path].set_active(True)
        self._active_path = path

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        """Construct the sidebar layout."""
        user_frame = ctk.CTkFrame(self, fg_color="transparent")
        user_frame.pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, PADDING_SM))

        row = ctk.CTkFrame(user_frame, fg_color="transparent")
        row.pack(fill="x")

        avatar = ctk.CTkFrame(
            row,
            width=_AVATAR_SIZE,
            height=_AVATAR_SIZE,
            corner_radius=_AVATAR_SIZE // 2,
            fg_color=ACCENT_PRIMARY,
        )
        avatar.pack(side="left", padx=(0, 10))
        avatar.pack_propagate(False)
        ctk.CTkLabel(
            avatar,
            text=self._display_name.strip()[:1].upper() or "?",
            font=FONT_SIDEBAR_ACTIVE,
            text_color=TEXT_LIGHT,
        ).place(relx=0.5, rely=0.5, anchor="center")

        text_frame = ctk.CTkFrame(row, fg_color="transparent")
        text_frame.pack(side="left", fill="x", expand=True)
        ctk.CTkLabel(
            text_frame,
            text=self._display_name,
            font=FONT_SIDEBAR_ACTIVE,
            text_color=TEXT_LIGHT,
            anchor="w",
        ).pack(fill="x")
        ctk.CTkLabel(
            text_frame,
            text=_ROLE_LABELS.get(str(self._identity.role), str(self._identity.role)),
            font=FONT_SMALL,
            text_color=SIDEBAR_TEXT,
            anchor="w",
        ).pack(fill="x")

        ctk.CTkFrame(self, height=1, fg_color=SIDEBAR_HOVER).pack(
            fill="x", padx=PADDING_MD, pady=PADDING_SM,
        )

        routes_frame = ctk.CTkScrollableFrame(self, fg_color="transparent")
        routes_frame.pack(fill="both", expand=True, pady=PADDING_SM)
        for entry in visible_entries(self._registry, self._identity, self._dashboard):
            btn = _RouteButton(routes_frame, entry.path, entry.title, self._on_navigate)
            btn.pack(fill="x", padx=PADDING_SM, pady=2)
            self._buttons[entry.path] = btn

        # --- Bottom section: dashboard switch, profile, logout ---
        bottom_frame = ctk.CTkFrame(self, fg_color="transparent")
        bottom_frame.pack(fill="x", padx=PADDING_SM, pady=PADDING_SM, side="bottom")

        if classify(self._identity).is_dual_role:
            other = "head" if self._dashboard == "admin" else "admin"
            label = "Switch to household" if other == "head" else "Switch to admin"
            ctk.CTkButton(
                bottom_frame,
                text=f"  ⇄   {label}",
                font=FONT_BODY,
                fg_color="transparent",
                hover_color=SIDEBAR_HOVER,
                text_color=SIDEBAR_TEXT,
                anchor="w",
                height=36,
                corner_radius=6,
                command=lambda: self._on_switch_dashboard(other),
            ).pack(fill="x")

        profile_btn = _RouteButton(bottom_frame, _PROFILE_PATH, "My profile", self._on_navigate)
        profile_btn.pack(fill="x")
        self._buttons[_PROFILE_PATH] = profile_btn

        ctk.CTkButton(
            bottom_frame,
            text="  ⏻   Log Out",
            font=FONT_BODY,
            fg_color="transparent",
            hover_color=LOGOUT_HOVER,
            text_color=LOGOUT_PRIMARY,
            anchor="w",
            height=36,
            corner_radius=6,
            command=self._on_logout,
        ).pack(fill="x")

        ctk.CTkFrame(self, height=1, fg_color=SIDEBAR_HOVER).pack(
            fill="x", padx=PADDING_MD, side="bottom",
        )
