import time

from pricing_portal.core.cache import QueryCache


def test_get_or_set_loads_once():
    cache = QueryCache(stale_seconds=60)
    calls = []

    def loader():
        calls.append(1)
        return ["FX-001"]

    assert cache.get_or_set(("products", None), loader) == ["FX-001"]
    assert cache.get_or_set(("products", None), loader) == ["FX-001"]
    assert len(calls) == 1
    assert cache.hits == 1
    assert cache.misses == 1


def test_empty_results_are_cached():
    cache = QueryCache(stale_seconds=60)
    cache.get_or_set(("client-prices", "u1", "list", None), lambda: [])
    assert cache.get(("client-prices", "u1", "list", None)) == []


def test_invalidate_by_prefix():
    cache = QueryCache(stale_seconds=60)
    cache.set(("client-prices", "u1", "list", None), [1])
    cache.set(("client-prices", "u1", "by-product"), {})
    cache.set(("client-prices", "u2", "list", None), [2])
    cache.set(("products", None, None, False), [])

    assert cache.invalidate("client-prices", "u1") == 2
    assert cache.get(("client-prices", "u2", "list", None)) == [2]

    assert cache.invalidate("client-prices") == 1
    assert len(cache) == 1


def test_entries_go_stale():
    cache = QueryCache(stale_seconds=0)
    cache.set(("categories",), ["lenses"])
    time.sleep(0.01)
    assert cache.get(("categories",)) is None


def test_clear():
    cache = QueryCache()
    cache.set(("categories",), [])
    cache.clear()
    assert len(cache) == 0
