"""PostgreSQL driver backed by asyncpg."""

from __future__ import annotations

from typing import Any, Coroutine, Mapping

import asyncpg

from iamdbauth.urls import has_scheme, merge_query, replace_scheme


class AsyncpgDriver:
    """Async PostgreSQL driver; ``connect`` returns a coroutine to await."""

    name = "asyncpg"
    subtypes = ("asyncpg",)
    default_port = 5432

    def __init__(self, *, connect_timeout: float = 10.0) -> None:
        self._connect_timeout = connect_timeout

    def accepts_descriptor(self, descriptor: str) -> bool:
        return has_scheme(descriptor, self.subtypes)

    def connect(self, descriptor: str, properties: Mapping[str, str]) -> Coroutine[Any, Any, asyncpg.Connection]:
        params = dict(properties)
        kwargs: dict[str, object] = {"timeout": float(params.pop("timeout", self._connect_timeout))}
        for key in ("user", "password"):
            if key in params:
                kwargs[key] = params.pop(key)
        # asyncpg only understands postgres:// DSNs; remaining properties ride in the query.
        dsn = merge_query(replace_scheme(descriptor, "postgresql"), params)
        return asyncpg.connect(dsn, **kwargs)


__all__ = ["AsyncpgDriver"]
