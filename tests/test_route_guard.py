from __future__ import annotations

import pytest

from familyaid.api_client import ApiTransportError
from familyaid.auth import SessionManager
from familyaid.models.enums import Capability, GuardOutcome
from familyaid.services.route_guard import LOGIN_PATH, NOT_FOUND_PATH, RouteGuard
from familyaid.ui.route_registry import ADMIN_ROLES, HOUSEHOLD_ROLES, ROOT_ONLY, RouteEntry
from helpers import ADMIN_PAYLOAD, DUAL_PAYLOAD, HEAD_PAYLOAD, ROOT_PAYLOAD, FakeClock, identity

HOUSEHOLD_ROUTE = RouteEntry("/dashboard", "Household Dashboard", None, HOUSEHOLD_ROLES)
ADMIN_ROUTE = RouteEntry("/admin", "Statistics", None, ADMIN_ROLES)
ROOT_ROUTE = RouteEntry("/admin/logs", "Activity Log", None, ROOT_ONLY)
LOGIN_ROUTE = RouteEntry(LOGIN_PATH, "Sign In", None, public=True)


@pytest.fixture
def guard(session: SessionManager) -> RouteGuard:
    return RouteGuard(session=session, settle_delay_s=0.0)


def test_spinner_before_anything_is_known(guard: RouteGuard) -> None:
    assert guard.evaluate(ADMIN_ROUTE).outcome is GuardOutcome.SPINNER


def test_spinner_while_first_fetch_runs(guard: RouteGuard, session: SessionManager) -> None:
    session.begin_loading()
    assert guard.evaluate(ADMIN_ROUTE).outcome is GuardOutcome.SPINNER


def test_logged_out_redirects_to_login(guard: RouteGuard, session: SessionManager) -> None:
    session.clear()

    decision = guard.evaluate(ADMIN_ROUTE)

    assert decision.outcome is GuardOutcome.REDIRECT_LOGIN
    assert decision.redirect_to == LOGIN_PATH


def test_failed_first_fetch_redirects_to_login(guard: RouteGuard, session: SessionManager) -> None:
    session.begin_loading()
    session.finish_loading(ApiTransportError("Cannot reach the server"))

    assert guard.evaluate(HOUSEHOLD_ROUTE).outcome is GuardOutcome.REDIRECT_LOGIN


def test_public_route_renders_for_anyone(guard: RouteGuard) -> None:
    assert guard.evaluate(LOGIN_ROUTE).outcome is GuardOutcome.RENDER


@pytest.mark.parametrize(
    ("payload", "route", "expected"),
    [
        (HEAD_PAYLOAD, HOUSEHOLD_ROUTE, GuardOutcome.RENDER),
        (HEAD_PAYLOAD, ADMIN_ROUTE, GuardOutcome.REDIRECT_NOT_FOUND),
        (ADMIN_PAYLOAD, HOUSEHOLD_ROUTE, GuardOutcome.RENDER),
        (ADMIN_PAYLOAD, ADMIN_ROUTE, GuardOutcome.RENDER),
        (ADMIN_PAYLOAD, ROOT_ROUTE, GuardOutcome.REDIRECT_NOT_FOUND),
        (ROOT_PAYLOAD, HOUSEHOLD_ROUTE, GuardOutcome.REDIRECT_NOT_FOUND),
        (ROOT_PAYLOAD, ROOT_ROUTE, GuardOutcome.RENDER),
    ],
)
def test_raw_role_decides(
    guard: RouteGuard,
    session: SessionManager,
    payload: dict,
    route: RouteEntry,
    expected: GuardOutcome,
) -> None:
    session.write(identity(payload))
    assert guard.evaluate(route).outcome is expected


def test_not_found_redirect_target(guard: RouteGuard, session: SessionManager) -> None:
    session.write(identity(HEAD_PAYLOAD))
    assert guard.evaluate(ROOT_ROUTE).redirect_to == NOT_FOUND_PATH


def test_params_pass_through_on_render(guard: RouteGuard, session: SessionManager) -> None:
    session.write(identity(ADMIN_PAYLOAD))
    entry = RouteEntry("/admin/families/:id/edit", "Edit Household", None, ADMIN_ROLES)

    decision = guard.evaluate(entry, entry.match("/admin/families/42/edit"))

    assert decision.outcome is GuardOutcome.RENDER
    assert decision.params == {"id": "42"}


def test_capability_requirement_uses_derived_capabilities(
    guard: RouteGuard,
    session: SessionManager,
) -> None:
    entry = RouteEntry(
        "/dashboard/requests", "Requests", None,
        HOUSEHOLD_ROLES, frozenset({Capability.HEAD}),
    )

    session.write(identity(DUAL_PAYLOAD))
    assert guard.evaluate(entry).outcome is GuardOutcome.RENDER

    session.write(identity(ADMIN_PAYLOAD))
    assert guard.evaluate(entry).outcome is GuardOutcome.REDIRECT_NOT_FOUND


def test_settle_delay_holds_the_spinner(session: SessionManager, clock: FakeClock) -> None:
    guard = RouteGuard(session=session, settle_delay_s=0.1)
    session.begin_loading()
    session.write(identity(ADMIN_PAYLOAD))
    session.finish_loading()

    held = guard.evaluate(ADMIN_ROUTE)
    assert held.outcome is GuardOutcome.SPINNER
    assert held.retry_after_s == pytest.approx(0.1)

    clock.advance(0.05)
    assert guard.evaluate(ADMIN_ROUTE).retry_after_s == pytest.approx(0.05)

    clock.advance(0.06)
    assert guard.evaluate(ADMIN_ROUTE).outcome is GuardOutcome.RENDER


def test_background_refresh_does_not_bring_the_spinner_back(
    session: SessionManager,
    clock: FakeClock,
) -> None:
    guard = RouteGuard(session=session, settle_delay_s=0.1)
    session.write(identity(HEAD_PAYLOAD))
    clock.advance(1)

    session.begin_loading()
    assert guard.evaluate(HOUSEHOLD_ROUTE).outcome is GuardOutcome.RENDER
    session.finish_loading()
    assert guard.evaluate(HOUSEHOLD_ROUTE).outcome is GuardOutcome.RENDER


def test_negative_delay_is_clamped(session: SessionManager) -> None:
    assert RouteGuard(session=session, settle_delay_s=-1).settle_delay_s == 0.0

