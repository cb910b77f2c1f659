"""Settings View: maintenance mode and the password policy in force.

Root-only screen.  Shows the current password rules and the
maintenance switch; flipping the switch goes to
``AppSettingsService.set_maintenance`` on a background thread.

**Thin UI Rule**: All persistence is delegated to ``AppSettingsService``.
"""

from __future__ import annotations

import threading

import customtkinter as ctk

from familyaid.api_client import ApiError
from familyaid.auth_guard import AuthenticationError, AuthorizationError
from familyaid.logger import StructuredLogger
from familyaid.services.app_settings_service import AppSettingsService
from familyaid.ui.theme import (
    ACCENT_PRIMARY,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_HEADING,
    FONT_LABEL,
    FONT_SMALL,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    SUCCESS_TEXT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)


class SettingsView(ctk.CTkFrame):
    """Maintenance toggle plus a read-only summary of the password policy.

    Parameters
    ----------
    parent:
        Content container provided by the app shell.
    app_settings:
        Settings service; owns the maintenance flag.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        app_settings: AppSettingsService,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._app_settings = app_settings
        self._logger = logger

        card = ctk.CTkFrame(self, fg_color=CONTENT_CARD_BG, corner_radius=CORNER_RADIUS * 2)
        card.pack(fill="x", padx=PADDING_LG, pady=PADDING_LG, anchor="n")
        inner = ctk.CTkFrame(card, fg_color="transparent")
        inner.pack(fill="x", padx=PADDING_LG, pady=PADDING_LG)

        ctk.CTkLabel(inner, text="Settings", font=FONT_HEADING, text_color=TEXT_PRIMARY).pack(
            anchor="w", pady=(0, PADDING_MD),
        )

        # --- Maintenance ---
        ctk.CTkLabel(
            inner, text="MAINTENANCE MODE", font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x")
        self._switch_var = ctk.BooleanVar(value=app_settings.maintenance)
        self._switch = ctk.CTkSwitch(
            inner,
            text="Only administrators can use the system",
            font=FONT_BODY,
            variable=self._switch_var,
            progress_color=ACCENT_PRIMARY,
            command=self._handle_toggle,
        )
        self._switch.pack(anchor="w", pady=(PADDING_SM, 0))
        self._status = ctk.CTkLabel(inner, text="", font=FONT_SMALL, anchor="w")
        self._status.pack(fill="x", pady=(0, PADDING_MD))

        # --- Password policy ---
        ctk.CTkLabel(
            inner, text="PASSWORD POLICY", font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(PADDING_SM, 4))
        policy = app_settings.password_policy
        rules = [f"At least {policy.min_length} characters"]
        if policy.require_uppercase:
            rules.append("An uppercase letter")
        if policy.require_lowercase:
            rules.append("A lowercase letter")
        if policy.require_numbers:
            rules.append("A digit")
        if policy.require_special_chars:
            rules.append("A special character")
        ctk.CTkLabel(
            inner,
            text="\n".join(f"•  {rule}" for rule in rules),
            font=FONT_BODY,
            text_color=TEXT_SECONDARY,
            anchor="w",
            justify="left",
        ).pack(fill="x")

    def _handle_toggle(self) -> None:
        enabled = bool(self._switch_var.get())
        self._switch.configure(state="disabled")

        def do_toggle() -> None:
            try:
                public = self._app_settings.set_maintenance(enabled)
            except (ApiError, AuthenticationError, AuthorizationError) as exc:
                self._logger.warning("Maintenance toggle failed: %s", exc)
                self.after(0, self._show_failure, enabled, str(exc))
                return
            self.after(0, self._show_success, public.maintenance)

        threading.Thread(target=do_toggle, name="maintenance-toggle", daemon=True).start()

    def _show_success(self, maintenance: bool) -> None:
        self._switch.configure(state="normal")
        self._switch_var.set(maintenance)
        self._status.configure(
            text="Maintenance mode is on." if maintenance else "Maintenance mode is off.",
            text_color=SUCCESS_TEXT,
        )

    def _show_failure(self, attempted: bool, message: str) -> None:
        self._switch.configure(state="normal")
        self._switch_var.set(not attempted)
        self._status.configure(text=message, text_color=ERROR_TEXT)
