import pytest

from app.services.cache_service import ResponseCache


def test_miss_then_hit(clock):
    cache = ResponseCache(ttl=300, clock=clock)
    assert cache.get("k") is None

    cache.put("k", ("a", "b"))
    assert cache.get("k") == ("a", "b")
    assert "k" in cache


def test_entry_expires_at_ttl_and_is_evicted(clock):
    cache = ResponseCache(ttl=300, clock=clock)
    cache.put("k", "v")

    clock.advance(299.9)
    assert cache.get("k") == "v"

    clock.advance(0.1)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_put_restarts_the_ttl(clock):
    cache = ResponseCache(ttl=300, clock=clock)
    cache.put("k", "old")
    clock.advance(200)
    cache.put("k", "new")
    clock.advance(200)

    assert cache.get("k") == "new"


def test_delete_and_clear(clock):
    cache = ResponseCache(ttl=300, clock=clock)
    cache.put("a", 1)
    cache.put("b", 2)

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    cache.clear()
    assert len(cache) == 0


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        ResponseCache(ttl=0)
