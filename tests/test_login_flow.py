from __future__ import annotations

import httpx
import pytest

from familyaid.auth import SessionManager
from familyaid.database import LocalStore
from familyaid.models.enums import LoginFailureKind, LoginState, LoginType
from familyaid.models.household import HouseholdRegistration
from familyaid.services import ServiceContainer
from familyaid.services.login_flow import LoginFlowController, LoginInProgressError
from helpers import (
    ADMIN_PAYLOAD,
    HEAD_PAYLOAD,
    FakeServer,
    audit_actions,
    identity,
    json_reply,
)

_LOCKED_AR = "الحساب محظور مؤقتاً. يرجى المحاولة بعد 15 دقيقة"


@pytest.fixture
def flow(services: ServiceContainer) -> LoginFlowController:
    return services["login_flow"]


def _registration(**overrides: str) -> HouseholdRegistration:
    fields = {
        "husband_name": "Ahmad Saleh",
        "husband_id": "405857004",
        "husband_birth_date": "1980-01-01",
        "husband_job": "Carpenter",
        "primary_phone": "0599000000",
        "password": "Secret#123",
        "confirm_password": "Secret#123",
    }
    fields.update(overrides)
    return HouseholdRegistration(**fields)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

def test_household_head_login_lands_on_dashboard_and_greets_by_household_name(
    flow: LoginFlowController,
    server: FakeServer,
    session: SessionManager,
) -> None:
    server.on("POST", "/api/login", json_reply(200, HEAD_PAYLOAD))
    server.on("GET", "/api/family", json_reply(200, {
        "id": 11, "husbandName": "Ahmad Saleh", "husbandID": "405857004",
    }))

    result = flow.submit("405857004", "Secret#123", LoginType.HEAD)

    assert result.success
    assert result.redirect_to == "/dashboard"
    assert result.welcome_message is None
    assert result.needs_household_lookup
    assert session.identity == identity(HEAD_PAYLOAD)
    assert flow.state is LoginState.SUCCESS
    assert flow.welcome_message(result.identity) == "Welcome, Ahmad Saleh"


def test_admin_login_greets_by_username(flow: LoginFlowController, server: FakeServer) -> None:
    server.on("POST", "/api/login", json_reply(200, ADMIN_PAYLOAD))

    result = flow.submit("admin", "Secret#123", LoginType.ADMIN)

    assert result.redirect_to == "/admin"
    assert result.welcome_message == "Welcome, admin"
    assert not server.calls("GET", "/api/family")


def test_welcome_falls_back_to_username_without_household(
    flow: LoginFlowController,
    server: FakeServer,
) -> None:
    server.on("POST", "/api/login", json_reply(200, HEAD_PAYLOAD))
    server.on("GET", "/api/family", json_reply(404, {"message": "No family"}))

    result = flow.submit("405857004", "Secret#123")

    assert flow.welcome_message(result.identity) == "Welcome, 405857004"


def test_missing_fields_are_rejected_without_a_request(
    flow: LoginFlowController,
    server: FakeServer,
) -> None:
    no_identifier = flow.submit("   ", "Secret#123", LoginType.HEAD)
    no_password = flow.submit("admin", "", LoginType.ADMIN)

    assert no_identifier.failure.kind is LoginFailureKind.VALIDATION_ERROR
    assert no_identifier.error_message == "Identity number is required."
    assert no_password.error_message == "Password is required."
    assert server.requests == []
    assert flow.state is LoginState.FAILURE


def test_lockout_message_is_the_same_on_every_attempt(
    flow: LoginFlowController,
    server: FakeServer,
    session: SessionManager,
    store: LocalStore,
) -> None:
    server.on("POST", "/api/login", json_reply(403, {"message": _LOCKED_AR}))

    first = flow.submit("admin", "wrong", LoginType.ADMIN)
    second = flow.submit("admin", "wrong", LoginType.ADMIN)

    expected = "Account locked for 15 minutes. Please wait before trying again."
    assert first.error_message == second.error_message == expected
    assert first.failure.minutes == 15
    assert session.identity is None
    assert flow.last_failure == second.failure
    assert audit_actions(store) == ["LOGIN_FAILED", "LOGIN_FAILED"]


def test_unreachable_server(flow: LoginFlowController, server: FakeServer) -> None:
    server.on("POST", "/api/login", httpx.ConnectError("connection refused"))

    result = flow.submit("admin", "Secret#123", LoginType.ADMIN)

    assert result.failure.kind is LoginFailureKind.NETWORK_ERROR
    assert flow.state is LoginState.FAILURE


def test_second_submission_while_one_is_running_is_refused(
    flow: LoginFlowController,
    server: FakeServer,
) -> None:
    seen: list[LoginState] = []

    def login(request: httpx.Request) -> httpx.Response:
        seen.append(flow.state)
        with pytest.raises(LoginInProgressError):
            flow.submit("admin", "again", LoginType.ADMIN)
        return json_reply(200, ADMIN_PAYLOAD)

    server.on("POST", "/api/login", login)

    assert flow.submit("admin", "Secret#123", LoginType.ADMIN).success
    assert seen == [LoginState.SUBMITTING]
    assert len(server.calls("POST", "/api/login")) == 1


def test_reset_returns_to_idle(flow: LoginFlowController) -> None:
    flow.submit("", "")
    flow.reset()
    assert flow.state is LoginState.IDLE


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def test_registration_field_errors_block_the_request(
    flow: LoginFlowController,
    server: FakeServer,
) -> None:
    result = flow.register(_registration(
        husband_name=" ",
        husband_id="12345",
        password="abc",
        confirm_password="abd",
    ))

    assert not result.success
    assert set(result.field_errors) == {
        "husband_name", "husband_id", "password", "confirm_password",
    }
    assert result.field_errors["husband_id"] == ["Identity number must be exactly 9 digits."]
    assert "Password must be at least 8 characters." in result.field_errors["password"]
    assert server.requests == []


def test_registration_sends_household_and_caches_new_account(
    flow: LoginFlowController,
    server: FakeServer,
    session: SessionManager,
    store: LocalStore,
) -> None:
    server.on("POST", "/api/register-family", json_reply(201, {"user": HEAD_PAYLOAD}))

    result = flow.register(_registration())

    assert result.success
    assert result.identity == identity(HEAD_PAYLOAD)
    assert session.identity == identity(HEAD_PAYLOAD)
    body = server.body(server.calls("POST", "/api/register-family")[0])
    assert body["user"] == {"password": "Secret#123"}
    assert body["family"]["husbandID"] == "405857004"
    assert body["members"] == []
    assert audit_actions(store) == ["REGISTER"]


def test_registration_server_error_is_reported(
    flow: LoginFlowController,
    server: FakeServer,
) -> None:
    server.on("POST", "/api/register-family", json_reply(400, {
        "message": "رقم الهوية مسجل مسبقاً",
    }))

    result = flow.register(_registration())

    assert not result.success
    assert result.error_message == "رقم الهوية مسجل مسبقاً"


# ---------------------------------------------------------------------------
# Password change
# ---------------------------------------------------------------------------

def test_password_change_requires_login(flow: LoginFlowController, server: FakeServer) -> None:
    result = flow.change_password("old", "Secret#123", "Secret#123")

    assert not result.success
    assert result.error_message == "Please log in to change your password."
    assert server.requests == []


def test_password_change_validates_new_password_only(
    flow: LoginFlowController,
    server: FakeServer,
    session: SessionManager,
) -> None:
    session.write(identity(HEAD_PAYLOAD))

    result = flow.change_password("old", "weak", "weak2")

    assert set(result.field_errors) == {"new_password", "confirm_password"}
    assert server.requests == []


def test_password_change_posts_and_audits(
    flow: LoginFlowController,
    server: FakeServer,
    session: SessionManager,
    store: LocalStore,
) -> None:
    session.write(identity(HEAD_PAYLOAD))
    server.on("POST", "/api/user/password", json_reply(200, {"message": "ok"}))

    result = flow.change_password("old", "Secret#123", "Secret#123")

    assert result.success
    assert server.body(server.calls("POST", "/api/user/password")[0]) == {
        "currentPassword": "old",
        "newPassword": "Secret#123",
    }
    assert audit_actions(store) == ["PASSWORD_CHANGE"]
