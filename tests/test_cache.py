from unittest.mock import MagicMock

import redis

from utils.cache_utils import DuplicateCache, RedisDuplicateCache


def test_memory_cache_membership():
    cache = DuplicateCache()
    assert not cache.has("p1")

    cache.add("p1")
    cache.add("p1")

    assert cache.has("p1")
    assert "p1" in cache
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


def test_redis_cache_uses_one_set():
    client = MagicMock()
    client.sismember.return_value = 1
    cache = RedisDuplicateCache(client=client, key="test:checked_in")

    cache.add("p1")
    assert cache.has("p1")

    client.sadd.assert_called_once_with("test:checked_in", "p1")
    client.sismember.assert_called_once_with("test:checked_in", "p1")


def test_redis_cache_read_failure_is_a_miss():
    client = MagicMock()
    client.sismember.side_effect = redis.ConnectionError("down")
    client.sadd.side_effect = redis.ConnectionError("down")
    cache = RedisDuplicateCache(client=client, key="test:checked_in")

    cache.add("p1")
    assert cache.has("p1") is False
    assert "p1" not in cache
