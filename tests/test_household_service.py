from __future__ import annotations

import httpx
import pytest

from familyaid.api_client import ApiError
from familyaid.auth import SessionManager
from familyaid.auth_guard import AuthenticationError
from familyaid.models.household import HouseholdRegistration
from familyaid.services import ServiceContainer
from familyaid.services.household_service import HouseholdService
from helpers import HEAD_PAYLOAD, FakeServer, identity, json_reply


@pytest.fixture
def households(services: ServiceContainer) -> HouseholdService:
    return services["household_service"]


def test_lookup_requires_login(households: HouseholdService, server: FakeServer) -> None:
    with pytest.raises(AuthenticationError):
        households.get_current_household()
    assert server.requests == []


def test_current_household(
    households: HouseholdService,
    server: FakeServer,
    session: SessionManager,
) -> None:
    session.write(identity(HEAD_PAYLOAD))
    server.on("GET", "/api/family", json_reply(200, {
        "id": 11,
        "husbandName": "Ahmad Saleh",
        "husbandID": "405857004",
        "primaryPhone": "0599000000",
        "wifeName": "ignored",
    }))

    household = households.get_current_household()

    assert household is not None
    assert household.id == "11"
    assert household.husband_name == "Ahmad Saleh"
    assert household.primary_phone == "0599000000"


@pytest.mark.parametrize(
    "reply",
    [
        json_reply(404, {"message": "No family"}),
        json_reply(200),
        json_reply(200, {"unexpected": True}),
    ],
)
def test_missing_or_unreadable_household_is_none(
    households: HouseholdService,
    server: FakeServer,
    session: SessionManager,
    reply: httpx.Response,
) -> None:
    session.write(identity(HEAD_PAYLOAD))
    server.on("GET", "/api/family", reply)

    assert households.get_current_household() is None


def test_server_errors_propagate(
    households: HouseholdService,
    server: FakeServer,
    session: SessionManager,
) -> None:
    session.write(identity(HEAD_PAYLOAD))
    server.on("GET", "/api/family", json_reply(500, {"message": "boom"}))

    with pytest.raises(ApiError):
        households.get_current_household()


def test_registration_body_is_trimmed(households: HouseholdService, server: FakeServer) -> None:
    server.on("POST", "/api/register-family", json_reply(201, {"message": "ok"}))
    form = HouseholdRegistration(
        husband_name="  Ahmad Saleh ",
        husband_id=" 405857004",
        husband_birth_date="1980-01-01",
        husband_job="Carpenter",
        primary_phone="0599000000 ",
        password="Secret#123",
        confirm_password="Secret#123",
    )

    assert households.register_family(form) == {"message": "ok"}

    body = server.body(server.calls("POST", "/api/register-family")[0])
    assert body["family"] == {
        "husbandName": "Ahmad Saleh",
        "husbandID": "405857004",
        "husbandBirthDate": "1980-01-01",
        "husbandJob": "Carpenter",
        "primaryPhone": "0599000000",
    }
