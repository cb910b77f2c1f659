"""
Settings Models.

``AppSettings`` mirrors the server's settings document (camelCase keys)
and ``PublicSettings`` the unauthenticated subset used by the
maintenance gate.  ``PasswordPolicy`` is the slice that the password
validator consumes.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PasswordPolicy(BaseModel):
    """Process-wide password rules applied to new passwords only.

    These defaults describe a policy with no server document behind it.
    The running client always takes its policy from
    ``AppSettings.password_policy``, whose defaults follow the server's
    settings page and additionally require a special character.
    """

    min_length: int = Field(default=8, ge=0)
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_numbers: bool = True
    require_special_chars: bool = False

    model_config = ConfigDict(frozen=True)


def _parse_flag(value: Union[bool, str, None]) -> bool:
    """Accept ``True``/``False`` and the server's ``"true"``/``"false"`` strings."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


class AppSettings(BaseModel):
    """Full settings document, merged over these defaults."""

    site_name: str = ""
    site_title: str = ""
    site_logo: str = ""
    auth_page_title: str = "نظام إدارة البيانات العائلية"
    auth_page_subtitle: str = "نظام شامل لإدارة بيانات الأسر وتقديم الطلبات والخدمات"
    auth_page_icon: str = ""
    primary_color: str = "#3b82f6"
    secondary_color: str = "#64748b"
    theme_mode: Literal["light", "dark", "auto"] = "auto"
    font_family: str = "Cairo"
    min_password_length: int = Field(default=8, ge=0)
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_numbers: bool = True
    require_special_chars: bool = True
    max_login_attempts: int = Field(default=5, ge=1)
    lockout_duration: int = Field(default=15, ge=0)
    session_timeout: int = Field(default=60, ge=0)
    maintenance: bool = False
    language: str = "ar"

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator(
        "require_uppercase",
        "require_lowercase",
        "require_numbers",
        "require_special_chars",
        "maintenance",
        mode="before",
    )
    @classmethod
    def _coerce_flags(cls, value: Union[bool, str, None]) -> bool:
        return _parse_flag(value)

    @property
    def password_policy(self) -> PasswordPolicy:
        return PasswordPolicy(
            min_length=self.min_password_length,
            require_uppercase=self.require_uppercase,
            require_lowercase=self.require_lowercase,
            require_numbers=self.require_numbers,
            require_special_chars=self.require_special_chars,
        )


class PublicSettings(BaseModel):
    """Settings readable without a session (``GET /api/public/settings``)."""

    maintenance: bool = False
    site_title: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator("maintenance", mode="before")
    @classmethod
    def _coerce_maintenance(cls, value: Union[bool, str, None]) -> bool:
        return _parse_flag(value)
