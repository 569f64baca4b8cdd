"""Exception hierarchy surfaced by the connect path."""

from __future__ import annotations


class IamAuthError(RuntimeError):
    """Base error for IAM auth connection failures."""


class MalformedDescriptor(IamAuthError, ValueError):
    """Raised when a connection descriptor cannot be parsed."""


class RegionUnresolved(IamAuthError):
    """Raised when neither the descriptor nor the environment names a region."""


class UnsupportedEngine(IamAuthError):
    """Raised when no underlying driver is registered for an engine subtype."""


class SigningFailed(IamAuthError):
    """Raised when credentials cannot be resolved or the token cannot be signed."""


class TokenWaitTimeout(IamAuthError, TimeoutError):
    """Raised when waiting on another caller's in-flight mint takes too long."""


class DriverLoadError(IamAuthError):
    """Raised when a discovered driver cannot be registered."""


__all__ = [
    "DriverLoadError",
    "IamAuthError",
    "MalformedDescriptor",
    "RegionUnresolved",
    "SigningFailed",
    "TokenWaitTimeout",
    "UnsupportedEngine",
]
