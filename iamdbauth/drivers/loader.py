"""Driver discovery via entry points."""

from __future__ import annotations

import importlib.metadata as metadata
import inspect
import logging
from dataclasses import dataclass
from typing import Iterable

from iamdbauth.errors import DriverLoadError

from .registry import DriverRegistry
from .types import UnderlyingDriver

LOG = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "iamdbauth.drivers"

# Shipped drivers, also resolvable when the package runs from a source checkout.
BUILTIN_ENTRY_POINTS = (
    metadata.EntryPoint(name="asyncpg", value="iamdbauth.drivers.asyncpg_driver:AsyncpgDriver", group=ENTRY_POINT_GROUP),
    metadata.EntryPoint(name="psycopg", value="iamdbauth.drivers.psycopg_driver:PsycopgDriver", group=ENTRY_POINT_GROUP),
    metadata.EntryPoint(name="pymysql", value="iamdbauth.drivers.pymysql_driver:PyMySQLDriver", group=ENTRY_POINT_GROUP),
)


@dataclass(slots=True, frozen=True)
class DiscoveredDriver:
    """Metadata captured from entry point discovery."""

    name: str
    subtypes: tuple[str, ...]
    entry_point: metadata.EntryPoint
    driver: UnderlyingDriver


class DriverLoader:
    """Discovers underlying drivers exposed via entry points and registers them."""

    def __init__(
        self,
        registry: DriverRegistry,
        *,
        entry_point_group: str = ENTRY_POINT_GROUP,
        fallback_entry_points: Iterable[metadata.EntryPoint] = BUILTIN_ENTRY_POINTS,
        builtin_drivers: Iterable[UnderlyingDriver | type[UnderlyingDriver]] | None = None,
    ) -> None:
        self._registry = registry
        self._entry_point_group = entry_point_group
        self._fallback_entry_points = tuple(fallback_entry_points)
        self._builtin_drivers = list(builtin_drivers or [])
        self._discovered: list[DiscoveredDriver] = []

    def discover(self) -> list[DiscoveredDriver]:
        """Enumerate drivers whose libraries are importable in this process."""

        eps = metadata.entry_points()
        group = {ep.name: ep for ep in eps.select(group=self._entry_point_group)}
        for entry_point in self._fallback_entry_points:
            group.setdefault(entry_point.name, entry_point)
        discovered: dict[str, DiscoveredDriver] = {}
        for entry_point in sorted(group.values(), key=lambda ep: ep.name):
            try:
                driver = self._load_driver(entry_point)
            except ImportError as exc:
                # Engine library not installed; the subtype stays unregistered.
                LOG.debug(
                    "Skipping driver with missing dependency",
                    extra={"driver": entry_point.name, "error": str(exc)},
                )
                continue
            discovered[driver.name] = DiscoveredDriver(
                name=driver.name,
                subtypes=tuple(driver.subtypes),
                entry_point=entry_point,
                driver=driver,
            )
        for builtin in self._iter_builtin_drivers():
            discovered.setdefault(builtin.name, builtin)
        self._discovered = list(discovered.values())
        return self._discovered

    def load(self) -> list[DiscoveredDriver]:
        """Register discovered drivers with the registry."""

        if not self._discovered:
            self.discover()
        loaded: list[DiscoveredDriver] = []
        for found in self._discovered:
            try:
                self._registry.register(found.driver)
            except ValueError as exc:
                LOG.warning("Skipping driver that cannot be registered", extra={"driver": found.name})
                raise DriverLoadError(f"Failed to register driver '{found.name}'") from exc
            LOG.debug("Registered driver", extra={"driver": found.name, "subtypes": found.subtypes})
            loaded.append(found)
        return loaded

    @property
    def discovered(self) -> tuple[DiscoveredDriver, ...]:
        return tuple(self._discovered)

    def _load_driver(self, entry_point: metadata.EntryPoint) -> UnderlyingDriver:
        obj = entry_point.load()
        if inspect.isclass(obj):
            return obj()  # type: ignore[call-arg]
        return obj  # type: ignore[return-value]

    def _iter_builtin_drivers(self) -> list[DiscoveredDriver]:
        builtins: list[DiscoveredDriver] = []
        for item in self._builtin_drivers:
            driver = item() if inspect.isclass(item) else item
            entry_point = metadata.EntryPoint(
                name=driver.name,
                value=f"{driver.__class__.__module__}:{driver.__class__.__qualname__}",
                group=self._entry_point_group,
            )
            builtins.append(
                DiscoveredDriver(
                    name=driver.name,
                    subtypes=tuple(driver.subtypes),
                    entry_point=entry_point,
                    driver=driver,
                )
            )
        return builtins


__all__ = ["BUILTIN_ENTRY_POINTS", "DiscoveredDriver", "DriverLoader", "ENTRY_POINT_GROUP"]
