"""Profile View.

Shows the logged-in account and lets it change its own password.  The
password policy in force is checked by ``LoginFlowController`` before
anything is sent.

**Thin UI Rule**: Zero business logic.
"""

from __future__ import annotations

import threading
from typing import Optional

import customtkinter as ctk

from familyaid.models.auth_models import PasswordChangeResult
from familyaid.models.identity import Identity
from familyaid.services.login_flow import LoginFlowController
from familyaid.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    FONT_LABEL,
    FONT_SMALL,
    INPUT_BG,
    INPUT_BORDER,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    SUCCESS_TEXT,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_FORM_WIDTH: int = 420

_FIELDS: tuple[tuple[str, str], ...] = (
    ("current_password", "CURRENT PASSWORD"),
    ("new_password", "NEW PASSWORD"),
    ("confirm_password", "CONFIRM NEW PASSWORD"),
)


class ProfileView(ctk.CTkFrame):
    """Account summary and password-change form."""

    def __init__(
        self,
        parent: ctk.CTkFrame,
        identity: Optional[Identity],
        login_flow: LoginFlowController,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._login_flow = login_flow
        self._entries: dict[str, ctk.CTkEntry] = {}
        self._errors: dict[str, ctk.CTkLabel] = {}

        card = ctk.CTkFrame(self, fg_color=CONTENT_CARD_BG, corner_radius=CORNER_RADIUS * 2)
        card.pack(padx=PADDING_LG, pady=PADDING_LG, anchor="n")
        inner = ctk.CTkFrame(card, fg_color="transparent", width=_FORM_WIDTH)
        inner.pack(padx=PADDING_LG * 2, pady=PADDING_LG)

        ctk.CTkLabel(inner, text="My profile", font=FONT_HEADING, text_color=TEXT_PRIMARY).pack(
            anchor="w",
        )
        if identity is not None:
            ctk.CTkLabel(
                inner,
                text=f"{identity.username}  ·  {identity.role}",
                font=FONT_BODY,
                text_color=TEXT_SECONDARY,
            ).pack(anchor="w", pady=(0, PADDING_MD))

        for field, label in _FIELDS:
            ctk.CTkLabel(
                inner, text=label, font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
            ).pack(fill="x", pady=(PADDING_SM, 4))
            entry = ctk.CTkEntry(
                inner,
                width=_FORM_WIDTH,
                font=FONT_BODY,
                fg_color=INPUT_BG,
                border_color=INPUT_BORDER,
                text_color=TEXT_PRIMARY,
                show="*",
                corner_radius=CORNER_RADIUS,
            )
            entry.pack(fill="x")
            error = ctk.CTkLabel(
                inner, text="", font=FONT_SMALL, text_color=ERROR_TEXT,
                anchor="w", justify="left", wraplength=_FORM_WIDTH,
            )
            error.pack(fill="x")
            self._entries[field] = entry
            self._errors[field] = error

        self._button = ctk.CTkButton(
            inner,
            text="Change password",
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            corner_radius=CORNER_RADIUS,
            command=self._handle_submit,
        )
        self._button.pack(fill="x", pady=(PADDING_MD, PADDING_SM))

        self._status = ctk.CTkLabel(inner, text="", font=FONT_SMALL, wraplength=_FORM_WIDTH)
        self._status.pack(fill="x")

    def _handle_submit(self) -> None:
        values = {field: entry.get() for field, entry in self._entries.items()}
        for label in self._errors.values():
            label.configure(text="")
        self._status.configure(text="")
        self._button.configure(state="disabled", text="Saving...")

        def do_change() -> None:
            result = self._login_flow.change_password(
                values["current_password"],
                values["new_password"],
                values["confirm_password"],
            )
            self.after(0, self._show_result, result)

        threading.Thread(target=do_change, name="password-change", daemon=True).start()

    def _show_result(self, result: PasswordChangeResult) -> None:
        self._button.configure(state="normal", text="Change password")
        if result.success:
            for entry in self._entries.values():
                entry.delete(0, "end")
            self._status.configure(text="Password changed.", text_color=SUCCESS_TEXT)
            return
        for field, messages in result.field_errors.items():
            if field in self._errors:
                self._errors[field].configure(text="\n".join(messages))
        if result.error_message:
            self._status.configure(text=result.error_message, text_color=ERROR_TEXT)
