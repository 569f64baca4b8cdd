"""Contract implemented by underlying engine drivers."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable


@runtime_checkable
class UnderlyingDriver(Protocol):
    """A real database driver the dispatcher hands connections to.

    ``connect`` receives the descriptor in the engine's own grammar plus the
    rewritten properties (password already replaced by the token). Async
    drivers return an awaitable.
    """

    name: str
    subtypes: tuple[str, ...]
    default_port: int

    def accepts_descriptor(self, descriptor: str) -> bool: ...

    def connect(self, descriptor: str, properties: Mapping[str, str]) -> Any: ...


__all__ = ["UnderlyingDriver"]
