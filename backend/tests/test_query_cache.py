import asyncio

import pytest

from virality.client.cache import QueryCache


class CountingFetcher:
    def __init__(self, values=None, fail=False, delay=0.01):
        self.calls = 0
        self.values = values or ["v1", "v2", "v3"]
        self.fail = fail
        self.delay = delay
        self.started = None

    async def __call__(self):
        self.calls += 1
        index = self.calls - 1
        if self.started is not None:
            self.started.set()
        await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("store down")
        return self.values[index]


def test_concurrent_reads_share_one_fetch():
    async def scenario():
        cache = QueryCache()
        fetcher = CountingFetcher()
        results = await asyncio.gather(*(cache.fetch(("analyses",), fetcher) for _ in range(5)))
        return fetcher.calls, results

    calls, results = asyncio.run(scenario())
    assert calls == 1
    assert results == ["v1"] * 5


def test_cached_value_is_reused_until_invalidated():
    async def scenario():
        cache = QueryCache()
        fetcher = CountingFetcher()
        first = await cache.fetch("k", fetcher)
        second = await cache.fetch("k", fetcher)
        cache.invalidate("k")
        third = await cache.fetch("k", fetcher)
        return first, second, third, fetcher.calls

    assert asyncio.run(scenario()) == ("v1", "v1", "v2", 2)


def test_distinct_keys_fetch_independently():
    async def scenario():
        cache = QueryCache()
        a, b = CountingFetcher(["a"]), CountingFetcher(["b"])
        return await asyncio.gather(cache.fetch("a", a), cache.fetch("b", b))

    assert asyncio.run(scenario()) == ["a", "b"]


def test_invalidate_during_inflight_fetch():
    async def scenario():
        cache = QueryCache()
        fetcher = CountingFetcher(delay=0.05)
        fetcher.started = asyncio.Event()

        stale_read = asyncio.ensure_future(cache.fetch("k", fetcher))
        await fetcher.started.wait()
        cache.invalidate("k")
        fresh_read = await cache.fetch("k", fetcher)
        return await stale_read, fresh_read, cache.get("k"), fetcher.calls

    stale, fresh, cached, calls = asyncio.run(scenario())
    # the read issued before invalidation still gets its (old) result
    assert stale == "v1"
    assert fresh == "v2"
    assert cached == "v2"
    assert calls == 2


def test_failed_fetch_keeps_previous_value():
    async def scenario():
        cache = QueryCache()
        await cache.fetch("k", CountingFetcher(["old"]))
        cache.invalidate("k")
        with pytest.raises(RuntimeError):
            await cache.fetch("k", CountingFetcher(fail=True))
        return cache.get("k"), cache.is_fresh("k"), cache.in_flight("k")

    assert asyncio.run(scenario()) == ("old", False, False)


def test_put_and_get():
    cache = QueryCache()
    assert cache.get("missing", "default") == "default"
    cache.put("k", {"id": 1})
    assert cache.get("k") == {"id": 1}
    assert cache.is_fresh("k")
