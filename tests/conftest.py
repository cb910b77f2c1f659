from __future__ import annotations

import os
from collections.abc import Iterator

import httpx
import pytest

import familyaid.config as config_module
from familyaid.api_client import ApiClient
from familyaid.auth import SessionManager
from familyaid.config import AppConfig
from familyaid.database import LocalStore
from familyaid.logger import StructuredLogger
from familyaid.schema import initialize_schema
from familyaid.services import ServiceContainer, create_services
from helpers import BASE_URL, FakeClock, FakeServer


@pytest.fixture(scope="session", autouse=True)
def _isolated_config(tmp_path_factory: pytest.TempPathFactory) -> Iterator[None]:
    log_dir = tmp_path_factory.mktemp("logs")
    previous = os.environ.get("LOG_FILE")
    os.environ["LOG_FILE"] = str(log_dir / "familyaid-test.log")
    config_module._config_instance = None
    yield
    config_module._config_instance = None
    if previous is None:
        os.environ.pop("LOG_FILE", None)
    else:
        os.environ["LOG_FILE"] = previous


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger(name="familyaid.tests")


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def api(server: FakeServer, logger: StructuredLogger) -> Iterator[ApiClient]:
    client = ApiClient(
        base_url=BASE_URL,
        timeout_s=5.0,
        logger=logger,
        transport=httpx.MockTransport(server),
    )
    yield client
    client.close()


@pytest.fixture
def store(logger: StructuredLogger) -> Iterator[LocalStore]:
    local = LocalStore(sqlite_path=":memory:", logger=logger)
    initialize_schema(local.sqlite, logger)
    yield local
    local.close()


@pytest.fixture
def session(clock: FakeClock) -> SessionManager:
    return SessionManager(clock=clock)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(API_BASE_URL=BASE_URL, ROUTE_SETTLE_DELAY_MS=0)


@pytest.fixture
def services(
    api: ApiClient,
    store: LocalStore,
    config: AppConfig,
    session: SessionManager,
) -> ServiceContainer:
    return create_services(api=api, store=store, config=config, session=session)
