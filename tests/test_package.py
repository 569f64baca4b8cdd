"""Tests for the process-wide connect entry points."""

from __future__ import annotations

from typing import Iterator

import pytest

import iamdbauth
from iamdbauth.config import Settings
from iamdbauth.dispatcher import IamAuthDriver

from conftest import EchoDriver

EXAMPLE = "wrap:iamauth:postgres://db.example.com:5432/orders?region=us-east-1&user=svc"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_default() -> Iterator[None]:
    iamdbauth.reset_default_driver()
    yield
    iamdbauth.reset_default_driver()


def test_module_connect_uses_installed_driver(dispatcher: IamAuthDriver, echo_driver: EchoDriver) -> None:
    iamdbauth.reset_default_driver(dispatcher)

    result = iamdbauth.connect(EXAMPLE, {"sslmode": "require"})

    assert result["properties"] == {"sslmode": "require", "user": "svc", "password": "TOKEN1"}
    assert iamdbauth.accepts_descriptor(EXAMPLE)
    assert iamdbauth.get_default_driver() is dispatcher


@pytest.mark.anyio
async def test_module_connect_async(dispatcher: IamAuthDriver) -> None:
    iamdbauth.reset_default_driver(dispatcher)

    result = await iamdbauth.connect_async(EXAMPLE)

    assert result["properties"]["password"] == "TOKEN1"


def test_default_driver_is_built_once(monkeypatch: pytest.MonkeyPatch, dispatcher: IamAuthDriver) -> None:
    builds: list[None] = []

    def _build(settings: Settings | None = None) -> IamAuthDriver:
        builds.append(None)
        return dispatcher

    monkeypatch.setattr(iamdbauth, "build_driver", _build)

    first = iamdbauth.get_default_driver()
    second = iamdbauth.get_default_driver()

    assert first is second is dispatcher
    assert len(builds) == 1


def test_build_driver_registers_shipped_drivers() -> None:
    settings = Settings(token_window_seconds=600, safety_margin_seconds=30)

    driver = iamdbauth.build_driver(settings)

    assert {"postgres", "postgresql", "asyncpg", "mysql", "mariadb"} <= set(driver.registry.subtypes())
    assert driver.cache.safety_margin.total_seconds() == 30
    assert driver.settings is settings
