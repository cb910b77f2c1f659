"""Login View: Authentication Screen.

Presents the sign-in form with Sign In / Register Household tabs.  The
sign-in tab has a login-type selector (household head, administrator,
system administrator) that only changes how the identifier field is
labelled; every type submits the same username and password.

**Thin UI Rule**: This module contains ZERO business logic.  It
gathers inputs, delegates to ``LoginFlowController``, and displays
results.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

import customtkinter as ctk

from familyaid.logger import StructuredLogger
from familyaid.models.auth_models import AuthResult, RegistrationResult
from familyaid.models.enums import LoginType
from familyaid.models.household import HouseholdRegistration
from familyaid.models.settings import AppSettings
from familyaid.services.login_flow import LoginFlowController, LoginInProgressError
from familyaid.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_BRAND,
    FONT_BUTTON,
    FONT_ICON_LG,
    FONT_LABEL,
    FONT_SMALL,
    FONT_SUBTITLE,
    INPUT_BG,
    INPUT_BORDER,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    SUCCESS_TEXT,
    TAB_HOVER,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
_CARD_WIDTH: int = 440
_TAB_HEIGHT: int = 42
_INPUT_HEIGHT: int = 40
_BUTTON_HEIGHT: int = 46
_BRAND_ICON_SIZE: int = 56
_REGISTER_HEIGHT: int = 420

_LOGIN_TYPES: dict[str, LoginType] = {
    "Household head": LoginType.HEAD,
    "Administrator": LoginType.ADMIN,
    "System admin": LoginType.ROOT,
}

_IDENTIFIER_LABELS: dict[LoginType, tuple[str, str]] = {
    LoginType.HEAD: ("IDENTITY NUMBER", "405857004"),
    LoginType.ADMIN: ("USERNAME", "admin"),
    LoginType.ROOT: ("USERNAME", "root"),
}

# (field name, label, placeholder, masked)
_REGISTRATION_FIELDS: tuple[tuple[str, str, str, bool], ...] = (
    ("husband_name", "FULL NAME", "Head of household", False),
    ("husband_id", "IDENTITY NUMBER", "9 digits", False),
    ("husband_birth_date", "BIRTH DATE", "YYYY-MM-DD", False),
    ("husband_job", "OCCUPATION", "", False),
    ("primary_phone", "MOBILE NUMBER", "059xxxxxxx", False),
    ("password", "PASSWORD", "", True),
    ("confirm_password", "CONFIRM PASSWORD", "", True),
)

_SIGN_IN_TEXT: str = "Sign In  →"
_REGISTER_TEXT: str = "Register Household  →"


class LoginView(ctk.CTkFrame):
    """Full-screen login frame with Sign In / Register Household tabs.

    Parameters
    ----------
    parent:
        The root ``CTk`` window this frame belongs to.
    login_flow:
        Controller owning login and registration.
    settings:
        Settings snapshot; supplies the page title and subtitle.
    on_login_success:
        Called on the main thread with the successful ``AuthResult``.
    on_registered:
        Called on the main thread after a successful registration.
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        parent: ctk.CTk,
        login_flow: LoginFlowController,
        settings: AppSettings,
        on_login_success: Callable[[AuthResult], None],
        on_registered: Callable[[RegistrationResult], None],
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)

        self._login_flow: LoginFlowController = login_flow
        self._settings: AppSettings = settings
        self._on_login_success = on_login_success
        self._on_registered = on_registered
        self._logger: StructuredLogger = logger

        self._login_type: LoginType = LoginType.HEAD

        # Sign In widgets
        self._identifier_label: Optional[ctk.CTkLabel] = None
        self._identifier_entry: Optional[ctk.CTkEntry] = None
        self._password_entry: Optional[ctk.CTkEntry] = None
        self._login_button: Optional[ctk.CTkButton] = None
        self._error_label: Optional[ctk.CTkLabel] = None
        self._message_label: Optional[ctk.CTkLabel] = None
        self._selector: Optional[ctk.CTkSegmentedButton] = None

        # Registration widgets, keyed by HouseholdRegistration field
        self._reg_entries: dict[str, ctk.CTkEntry] = {}
        self._reg_field_errors: dict[str, ctk.CTkLabel] = {}
        self._reg_button: Optional[ctk.CTkButton] = None
        self._reg_error_label: Optional[ctk.CTkLabel] = None

        self._sign_in_tab: Optional[ctk.CTkButton] = None
        self._register_tab: Optional[ctk.CTkButton] = None
        self._sign_in_frame: Optional[ctk.CTkFrame] = None
        self._register_frame: Optional[ctk.CTkScrollableFrame] = None

        self._build_ui()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def show_message(self, message: str) -> None:
        """Show an informational line above the sign-in form."""
        if self._message_label is not None:
            self._message_label.configure(text=message)
            self._message_label.pack(fill="x", pady=(0, PADDING_SM), before=self._selector)

    # ------------------------------------------------------------------
    # UI Construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=0)
        self.grid_rowconfigure(2, weight=1)
        self.grid_columnconfigure(0, weight=1)

        card = ctk.CTkFrame(
            self,
            width=_CARD_WIDTH,
            fg_color=CONTENT_CARD_BG,
            corner_radius=16,
            border_width=1,
            border_color=INPUT_BORDER,
        )
        card.grid(row=1, column=0, pady=PADDING_SM)

        inner = ctk.CTkFrame(card, fg_color="transparent")
        inner.pack(fill="both", expand=True, padx=36, pady=28)

        icon_frame = ctk.CTkFrame(
            inner,
            width=_BRAND_ICON_SIZE,
            height=_BRAND_ICON_SIZE,
            corner_radius=14,
            fg_color=ACCENT_PRIMARY,
        )
        icon_frame.pack(pady=(0, 12))
        icon_frame.pack_propagate(False)
        ctk.CTkLabel(
            icon_frame,
            text="⌂",
            font=FONT_ICON_LG,
            text_color=TEXT_LIGHT,
        ).place(relx=0.5, rely=0.5, anchor="center")

        ctk.CTkLabel(
            inner,
            text=self._settings.auth_page_title,
            font=FONT_BRAND,
            text_color=TEXT_PRIMARY,
            wraplength=_CARD_WIDTH - 60,
        ).pack(pady=(0, 2))
        ctk.CTkLabel(
            inner,
            text=self._settings.auth_page_subtitle,
            font=FONT_SUBTITLE,
            text_color=TEXT_SECONDARY,
            wraplength=_CARD_WIDTH - 60,
        ).pack(pady=(0, PADDING_LG))

        # -- Tab bar --
        tab_bar = ctk.CTkFrame(inner, fg_color="transparent", height=_TAB_HEIGHT)
        tab_bar.pack(fill="x", pady=(0, PADDING_MD))
        tab_bar.pack_propagate(False)
        tab_bar.grid_columnconfigure(0, weight=1)
        tab_bar.grid_columnconfigure(1, weight=1)

        self._sign_in_tab = self._tab_button(tab_bar, "Sign In", "sign_in")
        self._sign_in_tab.grid(row=0, column=0, sticky="nsew")
        self._register_tab = self._tab_button(tab_bar, "Register Household", "register")
        self._register_tab.grid(row=0, column=1, sticky="nsew")

        self._sign_in_frame = ctk.CTkFrame(inner, fg_color="transparent")
        self._build_sign_in_tab(self._sign_in_frame)

        self._register_frame = ctk.CTkScrollableFrame(
            inner, fg_color="transparent", height=_REGISTER_HEIGHT,
        )
        self._build_register_tab(self._register_frame)

        self._switch_tab("sign_in")

    def _tab_button(self, parent: ctk.CTkFrame, text: str, tab: str) -> ctk.CTkButton:
        return ctk.CTkButton(
            parent,
            text=text,
            font=FONT_BUTTON,
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=TEXT_SECONDARY,
            height=_TAB_HEIGHT,
            corner_radius=0,
            border_width=1,
            border_color=INPUT_BORDER,
            command=lambda: self._switch_tab(tab),
        )

    def _entry(self, parent: ctk.CTkFrame, placeholder: str, masked: bool) -> ctk.CTkEntry:
        return ctk.CTkEntry(
            parent,
            placeholder_text=placeholder,
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            show="*" if masked else "",
            height=_INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )

    def _build_sign_in_tab(self, parent: ctk.CTkFrame) -> None:
        """Login-type selector, identifier, password and submit button."""
        self._message_label = ctk.CTkLabel(
            parent, text="", font=FONT_SMALL, text_color=TEXT_SECONDARY,
            wraplength=_CARD_WIDTH - 100,
        )

        self._selector = selector = ctk.CTkSegmentedButton(
            parent,
            values=list(_LOGIN_TYPES),
            font=FONT_SMALL,
            selected_color=ACCENT_PRIMARY,
            selected_hover_color=ACCENT_HOVER,
            command=self._on_login_type_changed,
        )
        selector.set(next(iter(_LOGIN_TYPES)))
        selector.pack(fill="x", pady=(0, PADDING_MD))

        label, placeholder = _IDENTIFIER_LABELS[self._login_type]
        self._identifier_label = ctk.CTkLabel(
            parent, text=label, font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
        )
        self._identifier_label.pack(fill="x", pady=(0, 4))
        self._identifier_entry = self._entry(parent, placeholder, masked=False)
        self._identifier_entry.pack(fill="x", pady=(0, PADDING_MD))

        ctk.CTkLabel(
            parent, text="PASSWORD", font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(0, 4))
        self._password_entry = self._entry(parent, "•" * 8, masked=True)
        self._password_entry.pack(fill="x", pady=(0, PADDING_LG))

        self._login_button = ctk.CTkButton(
            parent,
            text=_SIGN_IN_TEXT,
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=_BUTTON_HEIGHT,
            corner_radius=CORNER_RADIUS,
            command=self._handle_login,
        )
        self._login_button.pack(fill="x", pady=(0, PADDING_SM))

        self._error_label = ctk.CTkLabel(
            parent, text="", font=FONT_SMALL, text_color=ERROR_TEXT,
            wraplength=_CARD_WIDTH - 100,
        )

        self._identifier_entry.bind("<Return>", self._on_enter_key)
        self._password_entry.bind("<Return>", self._on_enter_key)

    def _build_register_tab(self, parent: ctk.CTkScrollableFrame) -> None:
        """One labelled entry per registration field, each with its own error line."""
        for field, label, placeholder, masked in _REGISTRATION_FIELDS:
            ctk.CTkLabel(
                parent, text=label, font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
            ).pack(fill="x", pady=(PADDING_SM, 4))
            entry = self._entry(parent, placeholder, masked)
            entry.pack(fill="x")
            error = ctk.CTkLabel(
                parent, text="", font=FONT_SMALL, text_color=ERROR_TEXT,
                anchor="w", justify="left", wraplength=_CARD_WIDTH - 100,
            )
            error.pack(fill="x")
            self._reg_entries[field] = entry
            self._reg_field_errors[field] = error

        self._reg_button = ctk.CTkButton(
            parent,
            text=_REGISTER_TEXT,
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=_BUTTON_HEIGHT,
            corner_radius=CORNER_RADIUS,
            command=self._handle_register,
        )
        self._reg_button.pack(fill="x", pady=(PADDING_MD, PADDING_SM))

        self._reg_error_label = ctk.CTkLabel(
            parent, text="", font=FONT_SMALL, text_color=ERROR_TEXT,
            wraplength=_CARD_WIDTH - 100,
        )

    # ------------------------------------------------------------------
    # Tabs and selector
    # ------------------------------------------------------------------

    def _switch_tab(self, tab: str) -> None:
        active, inactive = (
            (self._sign_in_tab, self._register_tab)
            if tab == "sign_in"
            else (self._register_tab, self._sign_in_tab)
        )
        active.configure(text_color=ACCENT_PRIMARY, border_width=2, border_color=ACCENT_PRIMARY)
        inactive.configure(text_color=TEXT_SECONDARY, border_width=1, border_color=INPUT_BORDER)

        if tab == "sign_in":
            self._register_frame.pack_forget()
            self._sign_in_frame.pack(fill="both", expand=True)
        else:
            self._sign_in_frame.pack_forget()
            self._register_frame.pack(fill="both", expand=True)

    def _on_login_type_changed(self, value: str) -> None:
        self._login_type = _LOGIN_TYPES[value]
        label, placeholder = _IDENTIFIER_LABELS[self._login_type]
        self._identifier_label.configure(text=label)
        self._identifier_entry.configure(placeholder_text=placeholder)
        self._clear_error()

    def _on_enter_key(self, _event: object) -> None:
        self._handle_login()

    # ------------------------------------------------------------------
    # Event Handlers: Sign In
    # ------------------------------------------------------------------

    def _handle_login(self) -> None:
        """Read the form and run the login on a background thread."""
        identifier = self._identifier_entry.get()
        password = self._password_entry.get()
        login_type = self._login_type

        self._clear_error()
        self._set_loading(True)
        threading.Thread(
            target=self._do_login,
            args=(identifier, password, login_type),
            name="login",
            daemon=True,
        ).start()

    def _do_login(self, identifier: str, password: str, login_type: LoginType) -> None:
        """Background thread: delegate to ``LoginFlowController.submit``."""
        try:
            result = self._login_flow.submit(identifier, password, login_type)
        except LoginInProgressError:
            return

        def show_login_result() -> None:
            self._set_loading(False)
            if result.success:
                self._password_entry.delete(0, "end")
                self._on_login_success(result)
            else:
                self._show_error(result.error_message or "Login failed.")

        self.after(0, show_login_result)

    # ------------------------------------------------------------------
    # Event Handlers: Registration
    # ------------------------------------------------------------------

    def _handle_register(self) -> None:
        form = HouseholdRegistration(
            **{field: entry.get() for field, entry in self._reg_entries.items()},
        )
        self._clear_reg_messages()
        self._set_reg_loading(True)
        threading.Thread(
            target=self._do_register, args=(form,), name="register", daemon=True,
        ).start()

    def _do_register(self, form: HouseholdRegistration) -> None:
        """Background thread: delegate to ``LoginFlowController.register``."""
        result = self._login_flow.register(form)

        def show_registration_result() -> None:
            self._set_reg_loading(False)
            if result.success:
                for entry in self._reg_entries.values():
                    entry.delete(0, "end")
                self._on_registered(result)
                return
            for field, messages in result.field_errors.items():
                label = self._reg_field_errors.get(field)
                if label is not None:
                    label.configure(text="\n".join(messages))
            if result.error_message:
                self._reg_error_label.configure(text=result.error_message)
                self._reg_error_label.pack(fill="x")

        self.after(0, show_registration_result)

    # ------------------------------------------------------------------
    # UI Helper Methods
    # ------------------------------------------------------------------

    def _show_error(self, message: str) -> None:
        if self._error_label is not None:
            self._error_label.configure(text=message)
            self._error_label.pack(fill="x")

    def _clear_error(self) -> None:
        if self._error_label is not None:
            self._error_label.configure(text="")
            self._error_label.pack_forget()

    def _clear_reg_messages(self) -> None:
        for label in self._reg_field_errors.values():
            label.configure(text="")
        if self._reg_error_label is not None:
            self._reg_error_label.configure(text="")
            self._reg_error_label.pack_forget()

    def _set_loading(self, loading: bool) -> None:
        """Disable the sign-in button while a submission is running."""
        if self._login_button is None:
            return
        if loading:
            self._login_button.configure(text="Signing in...", state="disabled")
        else:
            self._login_button.configure(text=_SIGN_IN_TEXT, state="normal")

    def _set_reg_loading(self, loading: bool) -> None:
        if self._reg_button is None:
            return
        if loading:
            self._reg_button.configure(text="Registering...", state="disabled")
        else:
            self._reg_button.configure(text=_REGISTER_TEXT, state="normal")

    def show_registration_success(self) -> None:
        """Confirm a registration that did not log the new account in."""
        self._switch_tab("sign_in")
        self._message_label.configure(text_color=SUCCESS_TEXT)
        self.show_message("Registration complete. You can now sign in.")
