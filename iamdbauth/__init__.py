"""IAM-token authentication shim in front of real database drivers.

Typical use::

    import iamdbauth

    conn = iamdbauth.connect(
        "wrap:iamauth:postgres://db.example.com:5432/orders?region=us-east-1",
        user="svc",
    )
"""

from __future__ import annotations

import threading
from typing import Any, Mapping

from .cache import TokenCache
from .config import Settings, load_settings
from .descriptor import parse_descriptor
from .dispatcher import IamAuthDriver
from .drivers import DriverLoader, DriverRegistry, UnderlyingDriver
from .errors import (
    DriverLoadError,
    IamAuthError,
    MalformedDescriptor,
    RegionUnresolved,
    SigningFailed,
    TokenWaitTimeout,
    UnsupportedEngine,
)
from .models import CacheKey, ConnectionDescriptor, CredentialOptions
from .signer import BotoTokenSigner, TokenSigner

__version__ = "0.1.0"

_default_driver: IamAuthDriver | None = None
_default_lock = threading.Lock()


def build_driver(settings: Settings | None = None) -> IamAuthDriver:
    """Wire a dispatcher from settings, discovered drivers and the boto3 signer."""

    settings = settings or load_settings()
    registry = DriverRegistry()
    DriverLoader(registry).load()
    return IamAuthDriver(
        registry,
        signer=BotoTokenSigner(token_window=settings.token_window),
        cache=TokenCache(safety_margin=settings.safety_margin),
        settings=settings,
    )


def get_default_driver() -> IamAuthDriver:
    """Return the process-wide dispatcher, building it on first use."""

    global _default_driver
    if _default_driver is None:
        with _default_lock:
            if _default_driver is None:
                _default_driver = build_driver()
    return _default_driver


def reset_default_driver(driver: IamAuthDriver | None = None) -> None:
    """Replace (or drop) the process-wide dispatcher."""

    global _default_driver
    with _default_lock:
        _default_driver = driver


def accepts_descriptor(descriptor: str) -> bool:
    return get_default_driver().accepts_descriptor(descriptor)


def connect(descriptor: str, properties: Mapping[str, Any] | None = None, **kwargs: Any) -> Any:
    """Connect using the process-wide dispatcher."""

    return get_default_driver().connect(descriptor, properties, **kwargs)


async def connect_async(descriptor: str, properties: Mapping[str, Any] | None = None, **kwargs: Any) -> Any:
    return await get_default_driver().connect_async(descriptor, properties, **kwargs)


__all__ = [
    "BotoTokenSigner",
    "CacheKey",
    "ConnectionDescriptor",
    "CredentialOptions",
    "DriverLoadError",
    "DriverLoader",
    "DriverRegistry",
    "IamAuthDriver",
    "IamAuthError",
    "MalformedDescriptor",
    "RegionUnresolved",
    "Settings",
    "SigningFailed",
    "TokenCache",
    "TokenSigner",
    "TokenWaitTimeout",
    "UnderlyingDriver",
    "UnsupportedEngine",
    "accepts_descriptor",
    "build_driver",
    "connect",
    "connect_async",
    "get_default_driver",
    "load_settings",
    "parse_descriptor",
    "reset_default_driver",
]
