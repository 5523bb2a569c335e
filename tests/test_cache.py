"""Tests for aclcore.permissions.cache."""

from __future__ import annotations

import json
import logging
import sys
from unittest.mock import MagicMock, patch

import pytest

from aclcore import (
    AclConfig,
    CacheError,
    CacheStore,
    EffectivePermissionCache,
    InMemoryCacheStore,
    PermissionRecord,
    PermissionResolver,
    RedisCacheStore,
    Role,
    cache_store_from_config,
)


class TestInMemoryCacheStore:
    """Tests for the process-local store."""

    def test_put_get(self) -> None:
        store = InMemoryCacheStore()
        store.put("k", {"a": True}, 60)
        assert store.get("k") == {"a": True}

    def test_missing(self) -> None:
        assert InMemoryCacheStore().get("k") is None

    def test_expiry(self) -> None:
        now = [100.0]
        store = InMemoryCacheStore(clock=lambda: now[0])
        store.put("k", {"a": True}, 10)
        now[0] = 109.9
        assert store.get("k") == {"a": True}
        now[0] = 110.0
        assert store.get("k") is None
        assert len(store) == 0

    def test_delete(self) -> None:
        store = InMemoryCacheStore()
        store.put("k", {"a": True}, 60)
        store.delete("k")
        store.delete("k")
        assert store.get("k") is None

    def test_returns_copy(self) -> None:
        store = InMemoryCacheStore()
        value = {"a": True}
        store.put("k", value, 60)
        value["b"] = True
        store.get("k")["c"] = True  # type: ignore[index]
        assert store.get("k") == {"a": True}

    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryCacheStore(), CacheStore)
        assert isinstance(RedisCacheStore(MagicMock()), CacheStore)


class TestRedisCacheStore:
    """Tests for the redis-backed store with a mocked client."""

    def test_put_uses_setex(self) -> None:
        client = MagicMock()
        RedisCacheStore(client).put("acl.effective:role:1", {"post.view": True}, 60)
        client.setex.assert_called_once_with("acl.effective:role:1", 60, json.dumps({"post.view": True}))

    def test_get_decodes_json(self) -> None:
        client = MagicMock()
        client.get.return_value = '{"post.view": true, "post.delete": false}'
        assert RedisCacheStore(client).get("k") == {"post.view": True, "post.delete": False}

    def test_get_decodes_bytes(self) -> None:
        client = MagicMock()
        client.get.return_value = b'{"post.view": true}'
        assert RedisCacheStore(client).get("k") == {"post.view": True}

    def test_get_missing(self) -> None:
        client = MagicMock()
        client.get.return_value = None
        assert RedisCacheStore(client).get("k") is None

    def test_non_bool_values_deny(self) -> None:
        client = MagicMock()
        client.get.return_value = '{"post.view": "true", "post.edit": 1}'
        assert RedisCacheStore(client).get("k") == {"post.view": False, "post.edit": False}

    def test_corrupt_entry(self) -> None:
        client = MagicMock()
        client.get.return_value = "not json"
        with pytest.raises(CacheError):
            RedisCacheStore(client).get("k")

    def test_non_object_entry(self) -> None:
        client = MagicMock()
        client.get.return_value = "[1, 2]"
        with pytest.raises(CacheError):
            RedisCacheStore(client).get("k")

    def test_client_errors_wrapped(self) -> None:
        client = MagicMock()
        client.get.side_effect = ConnectionError("down")
        client.setex.side_effect = ConnectionError("down")
        client.delete.side_effect = ConnectionError("down")
        store = RedisCacheStore(client)
        with pytest.raises(CacheError) as exc_info:
            store.get("k")
        assert exc_info.value.details["key"] == "k"
        with pytest.raises(CacheError):
            store.put("k", {}, 60)
        with pytest.raises(CacheError):
            store.delete("k")

    def test_from_url(self) -> None:
        mock_redis = MagicMock()
        with patch.dict(sys.modules, {"redis": mock_redis}):
            store = RedisCacheStore.from_url("redis://localhost:6379/0")
        mock_redis.from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)
        assert isinstance(store, RedisCacheStore)


class TestEffectivePermissionCache:
    """Tests for per-principal memoization."""

    def test_computes_once(self) -> None:
        cache = EffectivePermissionCache(InMemoryCacheStore(), ttl_seconds=60)
        compute = MagicMock(return_value={"post.view": True})
        first = cache.get_or_compute("role:1", compute)
        second = cache.get_or_compute("role:1", compute)
        assert dict(first) == dict(second) == {"post.view": True}
        compute.assert_called_once()

    def test_zero_ttl_disables(self) -> None:
        store = InMemoryCacheStore()
        cache = EffectivePermissionCache(store, ttl_seconds=0)
        compute = MagicMock(return_value={"post.view": True})
        cache.get_or_compute("role:1", compute)
        cache.get_or_compute("role:1", compute)
        assert compute.call_count == 2
        assert len(store) == 0

    def test_negative_ttl_rejected(self) -> None:
        with pytest.raises(ValueError):
            EffectivePermissionCache(InMemoryCacheStore(), ttl_seconds=-1)

    def test_key_prefix(self) -> None:
        cache = EffectivePermissionCache(InMemoryCacheStore(), ttl_seconds=60, prefix="tenant-a")
        assert cache.key_for("user:7") == "tenant-a.effective:user:7"

    def test_invalidate(self) -> None:
        cache = EffectivePermissionCache(InMemoryCacheStore(), ttl_seconds=60)
        compute = MagicMock(return_value={"post.view": True})
        cache.get_or_compute("role:1", compute)
        cache.invalidate("role:1")
        cache.get_or_compute("role:1", compute)
        assert compute.call_count == 2

    def test_store_outage_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing store never changes the answer."""
        client = MagicMock()
        client.get.side_effect = ConnectionError("down")
        client.setex.side_effect = ConnectionError("down")
        client.delete.side_effect = ConnectionError("down")
        resolver = PermissionResolver(EffectivePermissionCache(RedisCacheStore(client), ttl_seconds=60))
        role = Role(1, "Viewer", grants=[PermissionRecord("post", {"view": True})], resolver=resolver)

        with caplog.at_level(logging.WARNING, logger="aclcore.permissions.cache"):
            assert role.can("post.view") is True
            assert role.can("post.delete") is False
            role.grant(PermissionRecord("post", {"delete": True}))
            assert role.can("post.delete") is True

        assert "Permission cache read failed" in caplog.text
        assert "Permission cache write failed" in caplog.text
        assert "Permission cache invalidation failed" in caplog.text

    def test_non_cache_error_from_custom_store(self) -> None:
        store = MagicMock()
        store.get.side_effect = RuntimeError("boom")
        cache = EffectivePermissionCache(store, ttl_seconds=60)
        assert dict(cache.get_or_compute("role:1", lambda: {"a": True})) == {"a": True}

    def test_from_config(self) -> None:
        cache = EffectivePermissionCache.from_config(AclConfig(cache_minutes=5, cache_prefix="x"))
        assert cache.ttl_seconds == 300
        assert cache.prefix == "x"
        assert isinstance(cache.store, InMemoryCacheStore)


class TestCacheStoreFromConfig:
    """Tests for store selection."""

    def test_in_memory_without_redis_url(self) -> None:
        assert isinstance(cache_store_from_config(AclConfig()), InMemoryCacheStore)

    def test_redis_with_url(self) -> None:
        mock_redis = MagicMock()
        with patch.dict(sys.modules, {"redis": mock_redis}):
            store = cache_store_from_config(AclConfig(redis_url="redis://localhost:6379/0"))
        assert isinstance(store, RedisCacheStore)

    def test_resolver_from_config(self) -> None:
        resolver = PermissionResolver.from_config(AclConfig(cache_minutes=2))
        assert resolver.cache is not None
        assert resolver.cache.ttl_seconds == 120
