"""Explicit registry mapping engine subtypes to underlying drivers."""

from __future__ import annotations

import threading
from typing import Iterable

from iamdbauth.errors import UnsupportedEngine

from .types import UnderlyingDriver


class DriverRegistry:
    """Collects underlying drivers keyed by the engine subtypes they serve."""

    def __init__(self, drivers: Iterable[UnderlyingDriver] = ()) -> None:
        self._drivers: dict[str, UnderlyingDriver] = {}
        self._lock = threading.Lock()
        self.register_many(drivers)

    def register(self, driver: UnderlyingDriver) -> None:
        """Register a driver for every subtype it declares."""

        if not driver.subtypes:
            raise ValueError(f"Driver '{driver.name}' declares no engine subtypes")
        with self._lock:
            for subtype in driver.subtypes:
                self._drivers[subtype] = driver

    def register_many(self, drivers: Iterable[UnderlyingDriver]) -> None:
        for driver in drivers:
            self.register(driver)

    def unregister(self, subtype: str) -> None:
        with self._lock:
            self._drivers.pop(subtype, None)

    def get(self, subtype: str) -> UnderlyingDriver | None:
        return self._drivers.get(subtype)

    def resolve(self, subtype: str) -> UnderlyingDriver:
        """Return the driver for ``subtype`` or raise ``UnsupportedEngine``."""

        driver = self._drivers.get(subtype)
        if driver is None:
            known = ", ".join(sorted(self._drivers)) or "none"
            raise UnsupportedEngine(f"No driver registered for engine '{subtype}' (registered: {known})")
        return driver

    def subtypes(self) -> list[str]:
        return sorted(self._drivers)

    def engines(self) -> dict[str, int]:
        """Default port per registered subtype."""

        return {subtype: driver.default_port for subtype, driver in self._drivers.items()}

    def __contains__(self, subtype: object) -> bool:
        return subtype in self._drivers

    def __len__(self) -> int:
        return len(self._drivers)


__all__ = ["DriverRegistry"]
