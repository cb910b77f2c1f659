"""UI Theme Constants for the FamilyAid client.

Centralises all colour, font, and sizing constants for the
CustomTkinter interface.  Dark sidebar + light content area; the
primary accent matches the server's default ``primaryColor``.

This file contains **zero logic**, only ``Final`` constants.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------

SIDEBAR_BG: Final[str] = "#1e293b"
SIDEBAR_HOVER: Final[str] = "#334155"
SIDEBAR_ACTIVE: Final[str] = "#1d4ed8"
SIDEBAR_TEXT: Final[str] = "#e2e8f0"

CONTENT_BG: Final[str] = "#f1f5f9"
CONTENT_CARD_BG: Final[str] = "#ffffff"

ACCENT_PRIMARY: Final[str] = "#3b82f6"
ACCENT_HOVER: Final[str] = "#2563eb"
TEXT_PRIMARY: Final[str] = "#0f172a"
TEXT_SECONDARY: Final[str] = "#64748b"
TEXT_LIGHT: Final[str] = "#ffffff"

# Input / form
INPUT_BG: Final[str] = "#ffffff"
INPUT_BORDER: Final[str] = "#cbd5e1"
ERROR_TEXT: Final[str] = "#dc2626"
SUCCESS_TEXT: Final[str] = "#16a34a"
WARNING_BG: Final[str] = "#fef3c7"
WARNING_TEXT: Final[str] = "#92400e"

# Tab / interactive
TAB_HOVER: Final[str] = "#f1f5f9"
LOGOUT_PRIMARY: Final[str] = "#ef4444"
LOGOUT_HOVER: Final[str] = "#3f1d1d"

# ---------------------------------------------------------------------------
# Fonts (Cairo covers Arabic and Latin; Tk falls back when missing)
# ---------------------------------------------------------------------------

FONT_FAMILY: Final[str] = "Cairo"
FONT_BRAND: Final[tuple[str, int, str]] = (FONT_FAMILY, 22, "bold")
FONT_ICON_LG: Final[tuple[str, int, str]] = (FONT_FAMILY, 24, "bold")
FONT_HEADING: Final[tuple[str, int, str]] = (FONT_FAMILY, 20, "bold")
FONT_SUBTITLE: Final[tuple[str, int]] = (FONT_FAMILY, 12)
FONT_BODY: Final[tuple[str, int]] = (FONT_FAMILY, 13)
FONT_SIDEBAR: Final[tuple[str, int]] = (FONT_FAMILY, 14)
FONT_SIDEBAR_ACTIVE: Final[tuple[str, int, str]] = (FONT_FAMILY, 14, "bold")
FONT_LABEL: Final[tuple[str, int, str]] = (FONT_FAMILY, 11, "bold")
FONT_SMALL: Final[tuple[str, int]] = (FONT_FAMILY, 11)
FONT_BUTTON: Final[tuple[str, int, str]] = (FONT_FAMILY, 13, "bold")

# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------

SIDEBAR_WIDTH: Final[int] = 250
LOGIN_WINDOW_WIDTH: Final[int] = 480
LOGIN_WINDOW_HEIGHT: Final[int] = 780
MAIN_WINDOW_WIDTH: Final[int] = 1200
MAIN_WINDOW_HEIGHT: Final[int] = 750
CORNER_RADIUS: Final[int] = 8
PADDING_SM: Final[int] = 8
PADDING_MD: Final[int] = 16
PADDING_LG: Final[int] = 24
