"""Underlying driver registry and discovery."""

from .loader import BUILTIN_ENTRY_POINTS, ENTRY_POINT_GROUP, DiscoveredDriver, DriverLoader
from .registry import DriverRegistry
from .types import UnderlyingDriver

__all__ = [
    "BUILTIN_ENTRY_POINTS",
    "DiscoveredDriver",
    "DriverLoader",
    "DriverRegistry",
    "ENTRY_POINT_GROUP",
    "UnderlyingDriver",
]
