"""Settings loading helpers."""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

import tomllib

from pydantic import BaseModel, Field, ValidationError, model_validator

LOG = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "iamdbauth" / "config.toml"


class Settings(BaseModel):
    """Tunables for descriptor parsing and token reuse."""

    scheme_prefix: str = "wrap"
    scheme_marker: str = "iamauth"
    token_window_seconds: int = Field(default=900, gt=0)
    safety_margin_seconds: int = Field(default=60, ge=0)
    user_property: str = "user"
    password_property: str = "password"
    region_property: str = "region"
    default_region: str | None = None
    engines: dict[str, int] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _margin_below_window(self) -> Settings:
        if self.safety_margin_seconds >= self.token_window_seconds:
            raise ValueError("safety_margin_seconds must be smaller than token_window_seconds")
        return self

    @property
    def token_window(self) -> timedelta:
        return timedelta(seconds=self.token_window_seconds)

    @property
    def safety_margin(self) -> timedelta:
        return timedelta(seconds=self.safety_margin_seconds)

    @property
    def descriptor_prefix(self) -> str:
        """Leading text every wrapped descriptor starts with."""

        return f"{self.scheme_prefix}:{self.scheme_marker}:"

    def with_overrides(self, **updates: object) -> Settings:
        """Return a validated copy with the given fields replaced."""

        return Settings.model_validate({**self.model_dump(), **updates})


def load_settings() -> Settings:
    """Load settings from disk; fall back to defaults if missing."""

    try:
        data = _read_config_file()
    except FileNotFoundError:
        return Settings()
    except (tomllib.TOMLDecodeError, OSError):
        return Settings()
    try:
        return Settings(**data)
    except ValidationError as exc:
        LOG.warning(
            "Ignoring invalid settings file; using defaults",
            extra={"path": str(CONFIG_FILE), "errors": exc.error_count()},
        )
        return Settings()


def _read_config_file() -> dict[str, object]:
    with CONFIG_FILE.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    if not isinstance(raw, dict):
        return data
    for key in (
        "scheme_prefix",
        "scheme_marker",
        "user_property",
        "password_property",
        "region_property",
        "default_region",
    ):
        value = raw.get(key)
        if isinstance(value, str) and value:
            data[key] = value
    for key in ("token_window_seconds", "safety_margin_seconds"):
        value = raw.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            data[key] = value
    engines = raw.get("engines")
    if isinstance(engines, dict):
        parsed: dict[str, int] = {}
        for subtype, port in engines.items():
            if isinstance(subtype, str) and isinstance(port, int) and port > 0:
                parsed[subtype] = port
        data["engines"] = parsed
    return data


__all__ = ["CONFIG_FILE", "Settings", "load_settings"]
