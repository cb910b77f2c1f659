"""Status Views.

Small full-content frames the app shell shows instead of a route's
own view: the loading spinner, the not-found page, the maintenance
holding page, and a placeholder for screens this client does not
implement.

**Thin UI Rule**: Zero business logic; these only display text.
"""

from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from familyaid.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    FONT_ICON_LG,
    PADDING_LG,
    PADDING_MD,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
    WARNING_BG,
    WARNING_TEXT,
)

_SPINNER_FRAMES: str = "◐◓◑◒"
_SPINNER_INTERVAL_MS: int = 120


class _MessageView(ctk.CTkFrame):
    """Centred card with an icon, a title and a body line."""

    def __init__(
        self,
        parent: ctk.CTkFrame,
        icon: str,
        title: str,
        body: str,
        *,
        card_bg: str = CONTENT_CARD_BG,
        title_color: str = TEXT_PRIMARY,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        card = ctk.CTkFrame(self, fg_color=card_bg, corner_radius=CORNER_RADIUS * 2)
        card.place(relx=0.5, rely=0.45, anchor="center")

        self._icon_label = ctk.CTkLabel(
            card, text=icon, font=FONT_ICON_LG, text_color=title_color,
        )
        self._icon_label.pack(padx=PADDING_LG * 2, pady=(PADDING_LG, PADDING_MD))
        ctk.CTkLabel(card, text=title, font=FONT_HEADING, text_color=title_color).pack(
            padx=PADDING_LG * 2,
        )
        self._body = ctk.CTkFrame(card, fg_color="transparent")
        self._body.pack(padx=PADDING_LG * 2, pady=(PADDING_MD, PADDING_LG))
        ctk.CTkLabel(
            self._body, text=body, font=FONT_BODY, text_color=TEXT_SECONDARY, wraplength=420,
        ).pack()


class SpinnerView(_MessageView):
    """Shown while the guard waits for the identity to settle."""

    def __init__(self, parent: ctk.CTkFrame) -> None:
        super().__init__(parent, _SPINNER_FRAMES[0], "Loading", "Checking your session...")
        self._frame_index: int = 0
        self._job: Optional[str] = self.after(_SPINNER_INTERVAL_MS, self._spin)

    def _spin(self) -> None:
        self._frame_index = (self._frame_index + 1) % len(_SPINNER_FRAMES)
        self._icon_label.configure(text=_SPINNER_FRAMES[self._frame_index])
        self._job = self.after(_SPINNER_INTERVAL_MS, self._spin)

    def destroy(self) -> None:
        if self._job is not None:
            self.after_cancel(self._job)
            self._job = None
        super().destroy()


class NotFoundView(_MessageView):
    """Unknown paths and routes the account's role may not open."""

    def __init__(self, parent: ctk.CTkFrame, on_home: Callable[[], None]) -> None:
        super().__init__(
            parent,
            "404",
            "Page not found",
            "The page you asked for does not exist or is not available to your account.",
        )
        ctk.CTkButton(
            self._body,
            text="Go to my dashboard",
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            corner_radius=CORNER_RADIUS,
            command=on_home,
        ).pack(pady=(PADDING_MD, 0))


class MaintenanceView(_MessageView):
    """Holding page while maintenance mode blocks the current account."""

    def __init__(self, parent: ctk.CTkFrame, site_title: Optional[str] = None) -> None:
        super().__init__(
            parent,
            "⚠",
            site_title or "Under maintenance",
            "The system is temporarily unavailable for maintenance. "
            "Please try again later.",
            card_bg=WARNING_BG,
            title_color=WARNING_TEXT,
        )


class PlaceholderView(_MessageView):
    """Stands in for record-management screens outside this client."""

    def __init__(self, parent: ctk.CTkFrame, title: str, params: dict[str, str]) -> None:
        detail = ", ".join(f"{key}={value}" for key, value in sorted(params.items()))
        body = "This screen is managed in the web application."
        if detail:
            body = f"{body}\n({detail})"
        super().__init__(parent, "ℹ", title, body)
