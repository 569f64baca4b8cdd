"""Shared dataclasses used across the parser, cache and dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping
from urllib.parse import quote

from .urls import encode_query


@dataclass(frozen=True, slots=True)
class CredentialOptions:
    """AWS credential overrides carried by wrapper-only properties."""

    profile: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = field(default=None, repr=False)
    role_arn: str | None = None
    role_session_name: str | None = None
    external_id: str | None = None

    @property
    def has_static_keys(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)


@dataclass(frozen=True, slots=True)
class CacheKey:
    """Identity plus endpoint that scopes a token's validity."""

    account_name: str
    host: str
    port: int
    region: str


@dataclass(frozen=True, slots=True)
class CachedToken:
    """A signed token and the instant it stops being accepted."""

    token: str = field(repr=False)
    expires_at: datetime

    def remaining(self, now: datetime) -> float:
        """Seconds of validity left at ``now`` (negative once expired)."""

        return (self.expires_at - now).total_seconds()


@dataclass(frozen=True, slots=True)
class ConnectionDescriptor:
    """Parsed form of a wrapped connection descriptor."""

    scheme: str
    engine_subtype: str
    host: str
    port: int
    database_name: str
    account_name: str
    region: str
    extra_properties: Mapping[str, str] = field(default_factory=dict)
    credentials: CredentialOptions = field(default_factory=CredentialOptions)

    def __post_init__(self) -> None:
        if not isinstance(self.extra_properties, MappingProxyType):
            object.__setattr__(self, "extra_properties", MappingProxyType(dict(self.extra_properties)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConnectionDescriptor):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    @property
    def cache_key(self) -> CacheKey:
        return CacheKey(
            account_name=self.account_name,
            host=self.host,
            port=self.port,
            region=self.region,
        )

    def delegate_descriptor(self) -> str:
        """Render the descriptor in the underlying engine's own grammar."""

        host = f"[{self.host}]" if ":" in self.host else self.host
        url = f"{self.engine_subtype}://{host}:{self.port}/{quote(self.database_name, safe='')}"
        if self.extra_properties:
            url = f"{url}?{encode_query(self.extra_properties.items())}"
        return url

    def _identity(self) -> tuple[object, ...]:
        return (
            self.scheme,
            self.engine_subtype,
            self.host,
            self.port,
            self.database_name,
            self.account_name,
            self.region,
            tuple(self.extra_properties.items()),
            self.credentials,
        )


__all__ = ["CacheKey", "CachedToken", "ConnectionDescriptor", "CredentialOptions"]
