"""Memoization of effective permission sets.

Provides:
- ``CacheStore`` — the key-value port (get / put with TTL / delete).
- ``InMemoryCacheStore`` — process-local store with monotonic expiry.
- ``RedisCacheStore`` — shared store backed by a redis client.
- ``EffectivePermissionCache`` — per-principal memoization over a store.
- ``cache_store_from_config()`` — pick a store from ``AclConfig``.

The cache key depends on the principal only, never on the expression being
checked. A store failure degrades to recomputation, never to a wrong answer.
Concurrent recomputation after expiry is tolerated: results are
deterministic, so the last write wins.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, Optional, Protocol, runtime_checkable

from ..config import AclConfig
from ..exceptions import CacheError

logger = logging.getLogger(__name__)

EffectiveSet = Mapping[str, bool]


@runtime_checkable
class CacheStore(Protocol):
    """Key-value store used to memoize effective permission sets."""

    def get(self, key: str) -> Optional[dict[str, bool]]: ...

    def put(self, key: str, value: dict[str, bool], ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryCacheStore:
    """Process-local store. Entries expire ``ttl_seconds`` after ``put``."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, dict[str, bool]]] = {}

    def get(self, key: str) -> Optional[dict[str, bool]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return dict(value)

    def put(self, key: str, value: dict[str, bool], ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, dict(value))

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheStore:
    """Store backed by a synchronous redis client.

    Values are JSON objects written with ``SETEX``. Client errors surface as
    :class:`CacheError`; :class:`EffectivePermissionCache` logs them and
    recomputes.
    """

    def __init__(self, client: Any) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> RedisCacheStore:
        import redis

        return cls(redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> Optional[dict[str, bool]]:
        try:
            raw = self._redis.get(key)
        except Exception as e:
            raise CacheError(f"Failed to read {key}: {e}", key=key) from e
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise CacheError(f"Corrupt cache entry {key}: {e}", key=key) from e
        if not isinstance(data, dict):
            raise CacheError(f"Corrupt cache entry {key}: expected object", key=key)
        return {k: v is True for k, v in data.items()}

    def put(self, key: str, value: dict[str, bool], ttl_seconds: int) -> None:
        try:
            self._redis.setex(key, ttl_seconds, json.dumps(value, sort_keys=True))
        except Exception as e:
            raise CacheError(f"Failed to write {key}: {e}", key=key) from e

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(key)
        except Exception as e:
            raise CacheError(f"Failed to delete {key}: {e}", key=key) from e


class EffectivePermissionCache:
    """Memoizes effective permission sets per principal.

    Args:
        store: Cache store port.
        ttl_seconds: Entry lifetime. Zero disables memoization.
        prefix: Key namespace shared by every resolver using the store.

    Example::

        cache = EffectivePermissionCache(InMemoryCacheStore(), ttl_seconds=60)
        perms = cache.get_or_compute("role:1", lambda: {"post.create": True})
    """

    __slots__ = ("store", "ttl_seconds", "prefix")

    def __init__(self, store: CacheStore, *, ttl_seconds: int, prefix: str = "acl") -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    @classmethod
    def from_config(cls, config: AclConfig, store: CacheStore | None = None) -> EffectivePermissionCache:
        return cls(
            store if store is not None else cache_store_from_config(config),
            ttl_seconds=config.cache_ttl_seconds,
            prefix=config.cache_prefix,
        )

    def key_for(self, principal_key: str) -> str:
        return f"{self.prefix}.effective:{principal_key}"

    def get_or_compute(self, principal_key: str, compute: Callable[[], dict[str, bool]]) -> EffectiveSet:
        """Return the cached set for ``principal_key`` or compute and store it."""
        if self.ttl_seconds == 0:
            return MappingProxyType(compute())

        key = self.key_for(principal_key)
        try:
            cached = self.store.get(key)
        except Exception as e:
            logger.warning("Permission cache read failed, recomputing: %s", e, extra={"cache_key": key})
            cached = None

        if cached is not None:
            logger.debug("Permission cache hit: %s", key)
            return MappingProxyType(cached)

        value = compute()
        try:
            self.store.put(key, value, self.ttl_seconds)
        except Exception as e:
            logger.warning("Permission cache write failed: %s", e, extra={"cache_key": key})
        return MappingProxyType(dict(value))

    def invalidate(self, principal_key: str) -> None:
        key = self.key_for(principal_key)
        try:
            self.store.delete(key)
        except Exception as e:
            logger.warning("Permission cache invalidation failed: %s", e, extra={"cache_key": key})
        else:
            logger.debug("Permission cache invalidated: %s", key)

    def __repr__(self) -> str:
        return f"EffectivePermissionCache(store={type(self.store).__name__}, ttl_seconds={self.ttl_seconds})"


def cache_store_from_config(config: AclConfig) -> CacheStore:
    """Redis store when ``config.redis_url`` is set, in-process store otherwise."""
    if config.redis_url:
        return RedisCacheStore.from_url(config.redis_url)
    return InMemoryCacheStore()


__all__ = [
    "CacheStore",
    "EffectivePermissionCache",
    "EffectiveSet",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "cache_store_from_config",
]
