"""Driver that swaps the password for an IAM token and delegates the connect."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Mapping

from .cache import TokenCache
from .config import Settings
from .descriptor import RegionResolver, accepts, parse_descriptor, wrapper_properties
from .drivers import DriverRegistry, UnderlyingDriver
from .models import ConnectionDescriptor
from .signer import TokenSigner, resolve_region

LOG = logging.getLogger(__name__)


class IamAuthDriver:
    """Connects through a registered driver using a cached or freshly minted token.

    Errors from parsing, signing and the underlying driver propagate unchanged;
    nothing is retried and there is no fallback to a static password.
    """

    def __init__(
        self,
        registry: DriverRegistry,
        *,
        signer: TokenSigner,
        cache: TokenCache | None = None,
        settings: Settings | None = None,
        region_resolver: RegionResolver = resolve_region,
    ) -> None:
        self._registry = registry
        self._signer = signer
        self._settings = settings or Settings()
        # An empty cache is falsy (it defines __len__), so test against None.
        self._cache = cache if cache is not None else TokenCache(safety_margin=self._settings.safety_margin)
        self._region_resolver = region_resolver

    @property
    def registry(self) -> DriverRegistry:
        return self._registry

    @property
    def cache(self) -> TokenCache:
        return self._cache

    @property
    def settings(self) -> Settings:
        return self._settings

    def accepts_descriptor(self, descriptor: str) -> bool:
        """True only for descriptors carrying this wrapper's prefix and marker."""

        return accepts(descriptor, self._settings)

    def parse(self, descriptor: str, properties: Mapping[str, Any] | None = None) -> ConnectionDescriptor:
        return parse_descriptor(
            descriptor,
            properties,
            settings=self._settings,
            engines=self._registry.engines(),
            region_resolver=self._region_resolver,
        )

    def token_for(self, parsed: ConnectionDescriptor, *, wait_timeout: float | None = None) -> str:
        """Return a token for the descriptor's identity, minting if needed."""

        def _mint() -> tuple[str, Any]:
            return self._signer.mint(
                parsed.host,
                parsed.port,
                parsed.account_name,
                parsed.region,
                parsed.credentials,
            )

        return self._cache.get_or_mint(parsed.cache_key, _mint, timeout=wait_timeout)

    def rewrite_properties(
        self,
        parsed: ConnectionDescriptor,
        token: str,
        properties: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Caller properties minus wrapper-only keys, with the token as password."""

        stripped = wrapper_properties(self._settings)
        rewritten = {key: value for key, value in (properties or {}).items() if key not in stripped}
        # The token is only valid for the account it was minted for.
        rewritten[self._settings.user_property] = parsed.account_name
        rewritten[self._settings.password_property] = token
        return rewritten

    def connect(
        self,
        descriptor: str,
        properties: Mapping[str, Any] | None = None,
        *,
        wait_timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        """Open a connection through the underlying driver for the descriptor's engine."""

        parsed, driver, props = self._prepare(descriptor, properties, kwargs)
        token = self.token_for(parsed, wait_timeout=wait_timeout)
        return self._delegate(parsed, driver, token, props)

    async def connect_async(
        self,
        descriptor: str,
        properties: Mapping[str, Any] | None = None,
        *,
        wait_timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        """Async variant of :meth:`connect` for drivers returning awaitables."""

        parsed, driver, props = self._prepare(descriptor, properties, kwargs)
        token = await asyncio.to_thread(self.token_for, parsed, wait_timeout=wait_timeout)
        result = self._delegate(parsed, driver, token, props)
        if inspect.isawaitable(result):
            return await result
        return result

    def _prepare(
        self,
        descriptor: str,
        properties: Mapping[str, Any] | None,
        kwargs: Mapping[str, Any],
    ) -> tuple[ConnectionDescriptor, UnderlyingDriver, dict[str, Any]]:
        props = {**(properties or {}), **kwargs}
        parsed = self.parse(descriptor, props)
        # Resolved before minting so an unlinked engine never costs a signing call.
        driver = self._registry.resolve(parsed.engine_subtype)
        return parsed, driver, props

    def _delegate(
        self,
        parsed: ConnectionDescriptor,
        driver: UnderlyingDriver,
        token: str,
        properties: Mapping[str, Any],
    ) -> Any:
        rewritten = self.rewrite_properties(parsed, token, properties)
        LOG.debug(
            "Delegating connect",
            extra={"driver": driver.name, "host": parsed.host, "port": parsed.port, "account": parsed.account_name},
        )
        return driver.connect(parsed.delegate_descriptor(), rewritten)


__all__ = ["IamAuthDriver"]
