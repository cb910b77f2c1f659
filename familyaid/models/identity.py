"""
Identity Model.

The authenticated account record as reported by ``GET /api/user`` and
``POST /api/login``.  The client never builds one from user input; it
only parses server payloads.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from familyaid.models.enums import Role


class Identity(BaseModel):
    """Server-issued identity of the logged-in account."""

    id: str
    username: str
    role: Role
    phone: Optional[str] = None
    is_protected: bool = Field(
        default=False,
        validation_alias=AliasChoices("isProtected", "is_protected"),
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Union[int, str]) -> str:
        # Serial integer keys on the server side.
        return str(value)

    @field_validator("is_protected", mode="before")
    @classmethod
    def _null_is_false(cls, value: Optional[bool]) -> bool:
        return bool(value)
