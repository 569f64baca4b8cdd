"""Query string helpers that keep ``+`` literal, as libpq URIs do."""

from __future__ import annotations

from typing import Iterable, Mapping
from urllib.parse import quote, unquote, urlencode, urlsplit, urlunsplit


def parse_query(query: str) -> dict[str, str]:
    """Decode ``k=v&...`` with percent-decoding only; a repeated key keeps its last value."""

    params: dict[str, str] = {}
    for pair in query.split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        params[unquote(key)] = unquote(value)
    return params


def encode_query(params: Iterable[tuple[str, str]]) -> str:
    return urlencode(list(params), quote_via=quote)


def replace_scheme(url: str, scheme: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


def merge_query(url: str, params: Mapping[str, str]) -> str:
    """Return ``url`` with ``params`` added to its query string; existing keys win."""

    if not params:
        return url
    parts = urlsplit(url)
    query = parse_query(parts.query)
    for key, value in params.items():
        query.setdefault(key, str(value))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, encode_query(query.items()), parts.fragment))


def has_scheme(url: str, schemes: tuple[str, ...]) -> bool:
    return isinstance(url, str) and url.startswith(tuple(f"{scheme}://" for scheme in schemes))


__all__ = ["encode_query", "has_scheme", "merge_query", "parse_query", "replace_scheme"]
