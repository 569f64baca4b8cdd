"""Parsing for ``wrap:iamauth:<engine>://host[:port]/database?...`` descriptors."""

from __future__ import annotations

import re
from typing import Callable, Mapping
from urllib.parse import unquote, urlsplit

from .config import Settings
from .errors import MalformedDescriptor, RegionUnresolved
from .models import ConnectionDescriptor, CredentialOptions
from .signer import resolve_region
from .urls import parse_query

RegionResolver = Callable[[str | None], str | None]

KNOWN_ENGINES: Mapping[str, int] = {
    "postgres": 5432,
    "postgresql": 5432,
    "mysql": 3306,
    "mariadb": 3306,
    "oracle": 1521,
    "sqlserver": 1433,
}

PROFILE_PROPERTY = "aws_profile"
ACCESS_KEY_PROPERTY = "aws_access_key_id"
SECRET_KEY_PROPERTY = "aws_secret_access_key"
ROLE_ARN_PROPERTY = "aws_role_arn"
ROLE_SESSION_NAME_PROPERTY = "aws_role_session_name"
EXTERNAL_ID_PROPERTY = "aws_external_id"

CREDENTIAL_PROPERTIES = (
    PROFILE_PROPERTY,
    ACCESS_KEY_PROPERTY,
    SECRET_KEY_PROPERTY,
    ROLE_ARN_PROPERTY,
    ROLE_SESSION_NAME_PROPERTY,
    EXTERNAL_ID_PROPERTY,
)

_SUBTYPE_PATTERN = re.compile(r"^[a-z][a-z0-9+.\-]*$")


def wrapper_properties(settings: Settings) -> frozenset[str]:
    """Property names consumed here and never forwarded to the underlying driver."""

    return frozenset((settings.region_property, *CREDENTIAL_PROPERTIES))


def accepts(descriptor: object, settings: Settings | None = None) -> bool:
    """True when ``descriptor`` carries the wrapper prefix and marker."""

    settings = settings or Settings()
    return isinstance(descriptor, str) and descriptor.startswith(settings.descriptor_prefix)


def parse_descriptor(
    descriptor: str,
    properties: Mapping[str, object] | None = None,
    *,
    settings: Settings | None = None,
    engines: Mapping[str, int] | None = None,
    region_resolver: RegionResolver = resolve_region,
) -> ConnectionDescriptor:
    """Decompose a wrapped descriptor into its connection fields.

    Query parameters take precedence over ``properties``. The port falls back
    to the engine's conventional port. The region comes from the region
    property, then ``region_resolver`` (given the ``aws_profile`` property),
    then ``settings.default_region``. Query values are percent-decoded only
    (``+`` stays literal, as in libpq URIs), and a repeated query key keeps
    its last value.
    """

    settings = settings or Settings()
    # Extra engines only add subtypes; configured ports override everything.
    catalog = {**(engines or {}), **KNOWN_ENGINES, **settings.engines}
    props = {str(key): str(value) for key, value in (properties or {}).items() if value is not None}

    if not accepts(descriptor, settings):
        raise MalformedDescriptor(
            f"Descriptor must start with '{settings.descriptor_prefix}': {_redact(descriptor)}"
        )
    remainder = descriptor[len(settings.descriptor_prefix):]
    subtype, sep, _ = remainder.partition("://")
    if not sep or not _SUBTYPE_PATTERN.match(subtype):
        raise MalformedDescriptor(f"Descriptor is missing an engine subtype: {_redact(descriptor)}")
    if subtype not in catalog:
        raise MalformedDescriptor(f"Unknown engine subtype '{subtype}'")

    parts = urlsplit(remainder)
    host = parts.hostname
    if not host:
        raise MalformedDescriptor("No database host specified; IAM auth requires a host in the descriptor")
    try:
        port = parts.port
    except ValueError as exc:
        raise MalformedDescriptor(f"Invalid port in descriptor: {exc}") from exc
    if port is None:
        port = catalog[subtype]

    database = unquote(parts.path.lstrip("/"))
    if not database:
        raise MalformedDescriptor("No database name specified in the descriptor")

    query = parse_query(parts.query)

    def lookup(name: str) -> str | None:
        value = query.get(name)
        if value is None:
            value = props.get(name)
        return value or None

    account = lookup(settings.user_property) or (unquote(parts.username) if parts.username else None)
    if not account:
        raise MalformedDescriptor(
            f"No database account specified; set the '{settings.user_property}' property"
        )

    credentials = CredentialOptions(
        profile=lookup(PROFILE_PROPERTY),
        access_key_id=lookup(ACCESS_KEY_PROPERTY),
        secret_access_key=lookup(SECRET_KEY_PROPERTY),
        role_arn=lookup(ROLE_ARN_PROPERTY),
        role_session_name=lookup(ROLE_SESSION_NAME_PROPERTY),
        external_id=lookup(EXTERNAL_ID_PROPERTY),
    )
    region = lookup(settings.region_property) or region_resolver(credentials.profile) or settings.default_region
    if not region:
        raise RegionUnresolved(
            f"No AWS region for {host}; set the '{settings.region_property}' property or configure a default region"
        )

    stripped = wrapper_properties(settings) | {settings.password_property}
    extra = {key: value for key, value in query.items() if key not in stripped}

    return ConnectionDescriptor(
        scheme=settings.descriptor_prefix.rstrip(":"),
        engine_subtype=subtype,
        host=host,
        port=port,
        database_name=database,
        account_name=account,
        region=region,
        extra_properties=extra,
        credentials=credentials,
    )


def _redact(descriptor: object) -> str:
    """Drop the query string, which may carry secrets, from error messages."""

    text = str(descriptor)
    return text.split("?", 1)[0]


__all__ = [
    "CREDENTIAL_PROPERTIES",
    "KNOWN_ENGINES",
    "RegionResolver",
    "accepts",
    "parse_descriptor",
    "wrapper_properties",
]
