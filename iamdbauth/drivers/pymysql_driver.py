"""MySQL / MariaDB driver backed by PyMySQL."""

from __future__ import annotations

import ssl
from typing import Callable, Mapping
from urllib.parse import unquote, urlsplit

import pymysql

from iamdbauth.urls import has_scheme, parse_query

# Properties PyMySQL accepts, with converters from their string form.
_OPTIONS: Mapping[str, Callable[[str], object]] = {
    "charset": str,
    "connect_timeout": int,
    "read_timeout": int,
    "write_timeout": int,
    "init_command": str,
    "program_name": str,
    "ssl_ca": str,
    "ssl_cert": str,
    "ssl_key": str,
}


class PyMySQLDriver:
    """Opens blocking MySQL connections over TLS.

    RDS only accepts IAM tokens through the cleartext auth plugin, which
    PyMySQL uses once the connection is encrypted. Without ``ssl_ca`` the
    system trust store is used.
    """

    name = "pymysql"
    subtypes = ("mysql", "mariadb")
    default_port = 3306

    def accepts_descriptor(self, descriptor: str) -> bool:
        return has_scheme(descriptor, self.subtypes)

    def connect(self, descriptor: str, properties: Mapping[str, str]) -> pymysql.connections.Connection:
        parts = urlsplit(descriptor)
        merged = {**properties, **parse_query(parts.query)}
        kwargs: dict[str, object] = {
            "host": parts.hostname,
            "port": parts.port or self.default_port,
            "database": unquote(parts.path.lstrip("/")) or None,
            "user": merged.get("user"),
            "password": properties.get("password", ""),
        }
        for key, convert in _OPTIONS.items():
            if key in merged:
                kwargs[key] = convert(merged[key])
        if "ssl_ca" not in kwargs:
            kwargs["ssl"] = ssl.create_default_context()
        return pymysql.connect(**kwargs)


__all__ = ["PyMySQLDriver"]
