from __future__ import annotations

from typing import Any, Optional

import pytest

from familyaid.services import ServiceContainer
from familyaid.services.maintenance_gate import LOGIN_PATH, is_blocked
from helpers import (
    ADMIN_PAYLOAD,
    DUAL_PAYLOAD,
    HEAD_PAYLOAD,
    ROOT_PAYLOAD,
    FakeServer,
    identity,
    json_reply,
)


@pytest.mark.parametrize(
    ("payload", "blocked"),
    [
        (None, True),
        (HEAD_PAYLOAD, True),
        (ADMIN_PAYLOAD, False),
        (DUAL_PAYLOAD, False),
        (ROOT_PAYLOAD, False),
    ],
)
def test_only_admins_pass_during_maintenance(
    payload: Optional[dict[str, Any]],
    blocked: bool,
) -> None:
    who = identity(payload) if payload is not None else None
    assert is_blocked(True, who, "/dashboard") is blocked


def test_login_view_stays_reachable() -> None:
    assert not is_blocked(True, None, LOGIN_PATH)
    assert not is_blocked(True, identity(HEAD_PAYLOAD), LOGIN_PATH)


def test_nothing_is_blocked_outside_maintenance() -> None:
    assert not is_blocked(False, None, "/admin")
    assert not is_blocked(False, identity(HEAD_PAYLOAD), "/dashboard")


def test_gate_reads_public_settings(services: ServiceContainer, server: FakeServer) -> None:
    gate = services["maintenance_gate"]
    server.on(
        "GET", "/api/public/settings",
        json_reply(200, {"maintenance": "true"}),
        json_reply(200, {"maintenance": False}),
    )

    assert not gate.is_blocked(None, "/dashboard")

    services["app_settings_service"].refresh_public()
    assert gate.is_blocked(None, "/dashboard")
    assert not gate.is_blocked(identity(ADMIN_PAYLOAD), "/admin")

    services["app_settings_service"].refresh_public()
    assert not gate.is_blocked(None, "/dashboard")
