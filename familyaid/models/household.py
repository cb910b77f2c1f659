"""
Household Models.

Only the fields the auth layer needs: the registered display name for
the welcome message, and the registration form submitted from the
login screen.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator


class Household(BaseModel):
    """Household record returned by ``GET /api/family``."""

    id: str
    husband_name: str
    husband_id: str
    primary_phone: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        alias_generator=lambda name: {
            "husband_name": "husbandName",
            "husband_id": "husbandID",
            "primary_phone": "primaryPhone",
        }.get(name, name),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Union[int, str]) -> str:
        return str(value)


class HouseholdRegistration(BaseModel):
    """Registration form for a new household head.

    Field values are kept raw; ``HouseholdService`` and
    ``LoginFlowController.register`` do the validation so that errors
    can be attached per field.
    """

    husband_name: str = ""
    husband_id: str = ""
    husband_birth_date: str = ""
    husband_job: str = ""
    primary_phone: str = ""
    password: str = ""
    confirm_password: str = ""

    def family_payload(self) -> dict[str, str]:
        """Household part of the ``/api/register-family`` body."""
        return {
            "husbandName": self.husband_name.strip(),
            "husbandID": self.husband_id.strip(),
            "husbandBirthDate": self.husband_birth_date.strip(),
            "husbandJob": self.husband_job.strip(),
            "primaryPhone": self.primary_phone.strip(),
        }
