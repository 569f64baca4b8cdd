"""Shared fakes for the token and dispatch tests."""

from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import pytest

from iamdbauth.cache import TokenCache
from iamdbauth.config import Settings
from iamdbauth.dispatcher import IamAuthDriver
from iamdbauth.drivers import DriverRegistry
from iamdbauth.models import CredentialOptions


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class StubSigner:
    """Signer returning numbered tokens valid for ``window`` seconds."""

    def __init__(self, clock: FakeClock, *, window: float = 900, delay: float = 0.0, token: str | None = None) -> None:
        self._clock = clock
        self._window = window
        self._delay = delay
        self._token = token
        self._lock = threading.Lock()
        self.calls: list[tuple[str, int, str, str, CredentialOptions | None]] = []

    def mint(
        self,
        host: str,
        port: int,
        account_name: str,
        region: str,
        credentials: CredentialOptions | None = None,
    ) -> tuple[str, datetime]:
        if self._delay:
            time.sleep(self._delay)
        with self._lock:
            self.calls.append((host, port, account_name, region, credentials))
            count = len(self.calls)
        token = self._token or f"TOKEN{count}"
        return token, self._clock() + timedelta(seconds=self._window)


class EchoDriver:
    """Underlying driver that records and echoes what it receives."""

    def __init__(self, name: str = "echo", subtypes: tuple[str, ...] = ("postgres", "mysql"), default_port: int = 5432) -> None:
        self.name = name
        self.subtypes = subtypes
        self.default_port = default_port
        self.received: list[tuple[str, dict[str, Any]]] = []

    def accepts_descriptor(self, descriptor: str) -> bool:
        return descriptor.split("://", 1)[0] in self.subtypes

    def connect(self, descriptor: str, properties: Mapping[str, Any]) -> dict[str, Any]:
        self.received.append((descriptor, dict(properties)))
        return {"descriptor": descriptor, "properties": dict(properties)}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def signer(clock: FakeClock) -> StubSigner:
    return StubSigner(clock)


@pytest.fixture
def echo_driver() -> EchoDriver:
    return EchoDriver()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def dispatcher(echo_driver: EchoDriver, signer: StubSigner, clock: FakeClock, settings: Settings) -> IamAuthDriver:
    return IamAuthDriver(
        DriverRegistry([echo_driver]),
        signer=signer,
        cache=TokenCache(safety_margin=settings.safety_margin, clock=clock),
        settings=settings,
        region_resolver=lambda _profile: None,
    )
