"""Tests for the cache store backends."""

from unittest.mock import MagicMock

import fakeredis
import redis

from composer_repo.storage.cache_store import MemoryCacheStore, RedisCacheStore


class TestMemoryCacheStore:
    def test_returns_value_until_expiry(self, clock) -> None:
        store = MemoryCacheStore(clock=clock)
        store.set_with_expiry("key", b"value", 60)

        clock.advance(59)
        assert store.get("key") == b"value"

        clock.advance(1)
        assert store.get("key") is None

    def test_missing_key(self, clock) -> None:
        assert MemoryCacheStore(clock=clock).get("nope") is None

    def test_overwrite_resets_expiry(self, clock) -> None:
        store = MemoryCacheStore(clock=clock)
        store.set_with_expiry("key", b"old", 10)
        clock.advance(5)
        store.set_with_expiry("key", b"new", 10)
        clock.advance(8)
        assert store.get("key") == b"new"


class TestRedisCacheStore:
    def test_round_trip_with_ttl(self) -> None:
        client = fakeredis.FakeRedis()
        store = RedisCacheStore(client)

        store.set_with_expiry("pkg_user_cache_0", b"[1,2,3]", 3600)

        assert store.get("pkg_user_cache_0") == b"[1,2,3]"
        assert 0 < client.ttl("pkg_user_cache_0") <= 3600

    def test_decoded_responses_are_returned_as_bytes(self) -> None:
        client = fakeredis.FakeRedis(decode_responses=True)
        store = RedisCacheStore(client)
        store.set_with_expiry("key", b"value", 10)
        assert store.get("key") == b"value"

    def test_read_error_is_a_miss(self) -> None:
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")
        assert RedisCacheStore(client).get("key") is None

    def test_write_error_is_swallowed(self) -> None:
        client = MagicMock()
        client.setex.side_effect = redis.ConnectionError("down")
        RedisCacheStore(client).set_with_expiry("key", b"value", 10)
        client.setex.assert_called_once_with("key", 10, b"value")
