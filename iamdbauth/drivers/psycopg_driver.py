"""PostgreSQL driver backed by psycopg 3."""

from __future__ import annotations

from typing import Mapping

import psycopg

from iamdbauth.urls import has_scheme


class PsycopgDriver:
    """Opens blocking PostgreSQL connections; libpq parses the descriptor itself."""

    name = "psycopg"
    subtypes = ("postgres", "postgresql")
    default_port = 5432

    def __init__(self, *, autocommit: bool = False) -> None:
        self._autocommit = autocommit

    def accepts_descriptor(self, descriptor: str) -> bool:
        return has_scheme(descriptor, self.subtypes)

    def connect(self, descriptor: str, properties: Mapping[str, str]) -> psycopg.Connection:
        # Keyword arguments override parameters already present in the conninfo.
        return psycopg.connect(descriptor, autocommit=self._autocommit, **properties)


__all__ = ["PsycopgDriver"]
