from __future__ import annotations

import json

import httpx
import pytest

from familyaid.api_client import ApiClient
from familyaid.auth import SessionManager
from familyaid.auth_guard import AuthenticationError, AuthorizationError
from familyaid.database import LocalStore
from familyaid.logger import StructuredLogger
from familyaid.services.app_settings_service import AppSettingsService
from helpers import HEAD_PAYLOAD, ROOT_PAYLOAD, FakeServer, audit_actions, identity, json_reply


@pytest.fixture
def settings_service(
    api: ApiClient,
    store: LocalStore,
    session: SessionManager,
    logger: StructuredLogger,
) -> AppSettingsService:
    return AppSettingsService(api=api, store=store, session=session, logger=logger)


def test_defaults_before_any_fetch(settings_service: AppSettingsService) -> None:
    policy = settings_service.password_policy

    assert policy.min_length == 8
    assert policy.require_special_chars is True
    assert settings_service.maintenance is False


def test_refresh_parses_server_strings_and_keeps_a_local_copy(
    settings_service: AppSettingsService,
    server: FakeServer,
) -> None:
    server.on("GET", "/api/settings", json_reply(200, {
        "minPasswordLength": 12,
        "requireNumbers": "false",
        "siteTitle": "",
        "authPageTitle": "Aid Registry",
    }))

    settings = settings_service.refresh()

    assert settings.min_password_length == 12
    assert settings.require_numbers is False
    assert settings.site_title == ""
    assert settings.auth_page_title == "Aid Registry"
    stored = json.loads(settings_service.get("server_settings"))
    assert stored["minPasswordLength"] == 12


def test_refresh_falls_back_to_local_copy(
    api: ApiClient,
    store: LocalStore,
    session: SessionManager,
    logger: StructuredLogger,
    server: FakeServer,
) -> None:
    first = AppSettingsService(api=api, store=store, session=session, logger=logger)
    server.on(
        "GET", "/api/settings",
        json_reply(200, {"minPasswordLength": 10}),
        httpx.ConnectError("connection refused"),
    )
    first.refresh()

    second = AppSettingsService(api=api, store=store, session=session, logger=logger)
    assert second.password_policy.min_length == 10
    assert second.refresh().min_password_length == 10


def test_refresh_without_local_copy_uses_defaults(
    settings_service: AppSettingsService,
    server: FakeServer,
) -> None:
    server.on("GET", "/api/settings", json_reply(500, {"message": "boom"}))

    assert settings_service.refresh().min_password_length == 8


def test_unreadable_local_copy_is_ignored(
    api: ApiClient,
    store: LocalStore,
    session: SessionManager,
    logger: StructuredLogger,
) -> None:
    writer = AppSettingsService(api=api, store=store, session=session, logger=logger)
    writer.set("public_settings", "{not json")
    writer.set("server_settings", json.dumps({"minPasswordLength": -3}))

    reader = AppSettingsService(api=api, store=store, session=session, logger=logger)

    assert reader.maintenance is False
    assert reader.password_policy.min_length == 8


def test_public_settings_accept_string_flag(
    settings_service: AppSettingsService,
    server: FakeServer,
) -> None:
    server.on("GET", "/api/public/settings", json_reply(200, {"maintenance": "true"}))

    assert settings_service.refresh_public().maintenance is True
    assert settings_service.maintenance is True


def test_root_can_toggle_maintenance(
    settings_service: AppSettingsService,
    server: FakeServer,
    session: SessionManager,
    store: LocalStore,
) -> None:
    session.write(identity(ROOT_PAYLOAD))
    server.on("POST", "/api/settings", json_reply(200, {"ok": True}))

    public = settings_service.set_maintenance(True)

    assert public.maintenance is True
    assert settings_service.maintenance is True
    body = server.body(server.calls("POST", "/api/settings")[0])
    assert (body["key"], body["value"]) == ("maintenance", "true")
    assert audit_actions(store) == ["MAINTENANCE_ON"]


def test_maintenance_toggle_is_root_only(
    settings_service: AppSettingsService,
    server: FakeServer,
    session: SessionManager,
) -> None:
    with pytest.raises(AuthenticationError):
        settings_service.set_maintenance(True)

    session.write(identity(HEAD_PAYLOAD))
    with pytest.raises(AuthorizationError):
        settings_service.set_maintenance(True)

    assert server.requests == []
    assert settings_service.maintenance is False


def test_key_value_access(settings_service: AppSettingsService) -> None:
    assert settings_service.get("theme") is None
    assert settings_service.set("theme", "dark")
    assert settings_service.set("theme", "light")
    assert settings_service.get("theme") == "light"
