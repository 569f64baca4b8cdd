"""Process-wide token cache with single-flight minting per key."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable

from .errors import TokenWaitTimeout
from .models import CacheKey, CachedToken
from .signer import Clock, utcnow

LOG = logging.getLogger(__name__)

DEFAULT_SAFETY_MARGIN = timedelta(seconds=60)

MintFn = Callable[[], tuple[str, datetime]]


class TokenCache:
    """Keyed token store that re-mints once a token is inside the safety margin.

    Each key owns a lock that is held only while minting, so concurrent callers
    for a stale key wait for one mint and then share its result. Hits never
    take a per-key lock, and different keys never wait on each other.
    """

    def __init__(self, *, safety_margin: timedelta = DEFAULT_SAFETY_MARGIN, clock: Clock = utcnow) -> None:
        self._safety_margin = safety_margin
        self._clock = clock
        self._entries: dict[CacheKey, CachedToken] = {}
        self._locks: dict[CacheKey, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def safety_margin(self) -> timedelta:
        return self._safety_margin

    def get_or_mint(self, key: CacheKey, mint_fn: MintFn, *, timeout: float | None = None) -> str:
        """Return a token for ``key`` with at least the safety margin left."""

        cached = self._fresh(key)
        if cached is not None:
            LOG.debug("Token cache hit", extra={"host": key.host, "account": key.account_name})
            return cached.token

        lock = self._lock_for(key)
        acquired = lock.acquire(timeout=timeout) if timeout is not None else lock.acquire()
        if not acquired:
            raise TokenWaitTimeout(
                f"Timed out after {timeout}s waiting for a token for {key.account_name}@{key.host}:{key.port}"
            )
        try:
            # Another caller may have minted while this one waited.
            cached = self._fresh(key)
            if cached is not None:
                return cached.token
            token, expires_at = mint_fn()
            self._entries[key] = CachedToken(token=token, expires_at=expires_at)
            LOG.debug(
                "Minted token",
                extra={"host": key.host, "account": key.account_name, "expires_at": expires_at.isoformat()},
            )
            return token
        finally:
            lock.release()

    def invalidate(self, key: CacheKey) -> None:
        """Forget the token cached for ``key``, if any."""

        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def status(self) -> dict[CacheKey, dict[str, object]]:
        """Expiry information per key, for health checks. Token values are omitted."""

        now = self._clock()
        return {
            key: {
                "expires_at": entry.expires_at.isoformat(),
                "ttl_seconds": entry.remaining(now),
                "reusable": self._is_reusable(entry, now),
            }
            for key, entry in tuple(self._entries.items())
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _fresh(self, key: CacheKey) -> CachedToken | None:
        entry = self._entries.get(key)
        if entry is None or not self._is_reusable(entry, self._clock()):
            return None
        return entry

    def _is_reusable(self, entry: CachedToken, now: datetime) -> bool:
        return entry.expires_at - now >= self._safety_margin

    def _lock_for(self, key: CacheKey) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


__all__ = ["DEFAULT_SAFETY_MARGIN", "MintFn", "TokenCache"]
