"""
Unit tests for the cache service and its backends.
"""

from unittest.mock import Mock, patch

import pytest

from services.cache_service import (
    CacheService,
    InMemoryCacheBackend,
    RedisCacheBackend,
    build_cache_service,
)


class TestInMemoryCacheBackend:
    """Test the in-process backend."""

    def test_set_and_get(self):
        backend = InMemoryCacheBackend()
        backend.set("clinic:1", "value", 60)
        assert backend.get("clinic:1") == "value"

    def test_missing_key(self):
        assert InMemoryCacheBackend().get("clinic:missing") is None

    def test_entry_expires(self):
        backend = InMemoryCacheBackend()
        with patch("services.cache_service.time.monotonic", return_value=1000.0):
            backend.set("clinic:1", "value", 10)
        with patch("services.cache_service.time.monotonic", return_value=1009.0):
            assert backend.get("clinic:1") == "value"
        with patch("services.cache_service.time.monotonic", return_value=1010.0):
            assert backend.get("clinic:1") is None

    def test_set_sweeps_expired_entries(self):
        backend = InMemoryCacheBackend()
        with patch("services.cache_service.time.monotonic", return_value=1000.0):
            backend.set("clinic:1", "a", 10)
            backend.set("clinic:2", "b", 60)
        with patch("services.cache_service.time.monotonic", return_value=1011.0):
            backend.set("clinic:3", "c", 60)

        assert set(backend._entries) == {"clinic:2", "clinic:3"}

    def test_delete(self):
        backend = InMemoryCacheBackend()
        backend.set("clinic:1", "value", 60)
        backend.delete("clinic:1")
        backend.delete("clinic:never-set")
        assert backend.get("clinic:1") is None

    def test_delete_pattern(self):
        backend = InMemoryCacheBackend()
        backend.set("clinic:1", "a", 60)
        backend.set("clinic:2", "b", 60)
        backend.set("doctor:1", "c", 60)

        assert backend.delete_pattern("clinic:*") == 2
        assert backend.get("clinic:1") is None
        assert backend.get("doctor:1") == "c"


class TestRedisCacheBackend:
    """Test the Redis backend against a mocked client."""

    def test_set_uses_expiry(self):
        client = Mock()
        RedisCacheBackend(client).set("clinic:1", "value", 3600)
        client.set.assert_called_once_with("clinic:1", "value", ex=3600)

    def test_get_and_delete(self):
        client = Mock()
        client.get.return_value = "value"
        backend = RedisCacheBackend(client)

        assert backend.get("clinic:1") == "value"
        backend.delete("clinic:1")
        client.delete.assert_called_once_with("clinic:1")

    def test_delete_pattern_scans_keys(self):
        client = Mock()
        client.scan_iter.return_value = iter(["clinic:1", "clinic:2"])
        client.delete.return_value = 1

        assert RedisCacheBackend(client).delete_pattern("clinic:*") == 2
        client.scan_iter.assert_called_once_with(match="clinic:*")


class TestCacheService:
    """Test the JSON cache facade."""

    def test_round_trips_json(self):
        cache = CacheService(InMemoryCacheBackend())
        cache.set("clinic:1", {"id": "1", "rooms": [{"name": "Consultório 1"}]})
        assert cache.get("clinic:1") == {"id": "1", "rooms": [{"name": "Consultório 1"}]}

    def test_uses_default_ttl(self):
        backend = Mock()
        CacheService(backend, default_ttl=3600).set("clinic:1", {"a": 1})
        backend.set.assert_called_once_with("clinic:1", '{"a": 1}', 3600)

    def test_explicit_ttl(self):
        backend = Mock()
        CacheService(backend, default_ttl=3600).set("clinic:1", {"a": 1}, ttl=5)
        assert backend.set.call_args[0][2] == 5

    def test_backend_failure_is_a_miss(self):
        backend = Mock()
        backend.get.side_effect = ConnectionError("redis down")
        assert CacheService(backend).get("clinic:1") is None

    def test_backend_failure_on_write_is_swallowed(self):
        backend = Mock()
        backend.set.side_effect = ConnectionError("redis down")
        backend.delete.side_effect = ConnectionError("redis down")
        backend.delete_pattern.side_effect = ConnectionError("redis down")
        cache = CacheService(backend)

        cache.set("clinic:1", {"a": 1})
        cache.delete("clinic:1")
        assert cache.delete_pattern("clinic:*") == 0

    def test_undecodable_entry_is_dropped(self):
        backend = InMemoryCacheBackend()
        backend.set("clinic:1", "not json{", 60)
        cache = CacheService(backend)

        assert cache.get("clinic:1") is None
        assert backend.get("clinic:1") is None


class TestBuildCacheService:
    """Test backend selection."""

    def test_in_memory_without_redis_url(self):
        cache = build_cache_service(redis_url="")
        assert isinstance(cache.backend, InMemoryCacheBackend)

    @patch("services.cache_service.redis.Redis.from_url")
    def test_redis_with_url(self, mock_from_url):
        cache = build_cache_service(redis_url="redis://localhost:6379/0")

        assert isinstance(cache.backend, RedisCacheBackend)
        mock_from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)
