from __future__ import annotations

import pytest
from pydantic import ValidationError

from familyaid.config import AppConfig


def test_base_url_is_normalised() -> None:
    config = AppConfig(API_BASE_URL=" https://aid.example.org/ ")
    assert config.API_BASE_URL == "https://aid.example.org"


def test_settle_delay_in_seconds() -> None:
    assert AppConfig(ROUTE_SETTLE_DELAY_MS=250).route_settle_delay_s == 0.25
    assert AppConfig(ROUTE_SETTLE_DELAY_MS=0).route_settle_delay_s == 0.0


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IDENTITY_FETCH_RETRIES", "3")
    monkeypatch.setenv("REQUEST_TIMEOUT_S", "2.5")

    config = AppConfig()

    assert config.IDENTITY_FETCH_RETRIES == 3
    assert config.REQUEST_TIMEOUT_S == 2.5


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        AppConfig(REQUEST_TIMEOUT_S=0)
    with pytest.raises(ValidationError):
        AppConfig(ROUTE_SETTLE_DELAY_MS=-1)


def test_log_level_is_normalised_and_checked() -> None:
    assert AppConfig(LOG_LEVEL=" debug ").LOG_LEVEL == "DEBUG"
    with pytest.raises(ValidationError):
        AppConfig(LOG_LEVEL="chatty")
