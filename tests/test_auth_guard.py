from __future__ import annotations

import pytest

from familyaid.auth import SessionManager
from familyaid.auth_guard import (
    AuthenticationError,
    AuthorizationError,
    require_auth,
    require_roles,
)
from familyaid.models.enums import Role
from helpers import ADMIN_PAYLOAD, HEAD_PAYLOAD, ROOT_PAYLOAD, identity


def test_require_auth(session: SessionManager) -> None:
    @require_auth(session)
    def whoami() -> str:
        return session.get_current_identity().username

    with pytest.raises(AuthenticationError):
        whoami()

    session.write(identity(HEAD_PAYLOAD))
    assert whoami() == "405857004"
    assert whoami.__name__ == "whoami"


def test_require_roles_checks_raw_role(session: SessionManager) -> None:
    @require_roles(session, {Role.ADMIN, Role.ROOT})
    def list_households(page: int = 1) -> int:
        return page

    with pytest.raises(AuthenticationError):
        list_households()

    session.write(identity(HEAD_PAYLOAD))
    with pytest.raises(AuthorizationError, match="head"):
        list_households()

    session.write(identity(ADMIN_PAYLOAD))
    assert list_households(page=3) == 3

    session.write(identity(ROOT_PAYLOAD))
    assert list_households() == 1


def test_guard_follows_logout(session: SessionManager) -> None:
    session.write(identity(ROOT_PAYLOAD))

    @require_roles(session, [Role.ROOT])
    def read_logs() -> list[str]:
        return []

    assert read_logs() == []
    session.clear()
    with pytest.raises(AuthenticationError):
        read_logs()
