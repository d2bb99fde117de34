"""Tests for the in-process result cache."""

from unittest.mock import Mock, patch

import pytest

from querystone.cache import CacheManager
from querystone.protocols import CacheProtocol


class TestCacheManager:
    """Storage, expiry and statistics of CacheManager."""

    @pytest.fixture
    def cache(self):
        return CacheManager(enabled=True)

    def test_satisfies_protocol(self, cache):
        assert isinstance(cache, CacheProtocol)

    def test_save_and_get(self, cache):
        assert cache.save("k1", [{"id": 1}])
        assert cache.exists("k1")
        assert cache.get("k1") == [{"id": 1}]

    def test_empty_result_counts_as_hit(self, cache):
        cache.save("k1", [])
        assert cache.exists("k1")
        assert cache.get("k1") == []
        assert cache.get_stats()["hits"] == 1

    def test_miss_returns_none(self, cache):
        assert cache.get("missing") is None
        assert cache.get_stats()["misses"] == 1

    def test_loader_populates_on_miss(self, cache):
        loader = Mock(return_value=42)
        assert cache.get("k", loader) == 42
        assert cache.get("k", loader) == 42
        loader.assert_called_once()

    def test_loader_errors_propagate(self, cache):
        with pytest.raises(RuntimeError):
            cache.get("k", Mock(side_effect=RuntimeError("down")))
        assert not cache.exists("k")

    def test_disabled_cache_does_not_store(self):
        cache = CacheManager(enabled=False)
        assert cache.save("k", 1) is False
        assert not cache.exists("k")

    def test_enable_disable(self, cache):
        cache.disable()
        assert not cache.is_enabled()
        cache.enable()
        assert cache.is_enabled()

    def test_ttl_expiry(self, cache):
        with patch("querystone.cache.manager.time.time", return_value=1000.0):
            cache.save("k", "v", ttl=10)
        with patch("querystone.cache.manager.time.time", return_value=1009.0):
            assert cache.exists("k")
        with patch("querystone.cache.manager.time.time", return_value=1010.0):
            assert not cache.exists("k")
            assert cache.get("k") is None

    def test_default_ttl_applies(self):
        cache = CacheManager(enabled=True, default_ttl=5)
        with patch("querystone.cache.manager.time.time", return_value=0.0):
            cache.save("k", "v")
        assert cache.get_stats()["keys_with_ttl"] == 1

    def test_cleanup_expired(self, cache):
        with patch("querystone.cache.manager.time.time", return_value=0.0):
            cache.save("old", 1, ttl=1)
            cache.save("forever", 2)
        with patch("querystone.cache.manager.time.time", return_value=5.0):
            assert cache.cleanup_expired() == 1
        assert cache.exists("forever")

    def test_delete(self, cache):
        cache.save("k", 1)
        assert cache.delete("k")
        assert not cache.delete("k")

    def test_clear_by_pattern(self, cache):
        cache.save("abc1", 1)
        cache.save("abc2", 2)
        cache.save("xyz", 3)
        assert cache.clear("abc*") == 2
        assert cache.exists("xyz")
        assert cache.clear() == 1
        assert cache.get_stats()["total_keys"] == 0

    def test_stats(self, cache):
        cache.save("k", 1)
        cache.get("k")
        cache.get("k")
        cache.get("other")
        stats = cache.get_stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["hit_rate"] == pytest.approx(2 / 3)
        assert stats["top_accessed"][0] == ("k", 2)
