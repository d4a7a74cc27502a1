"""
Unit tests for the TTL query cache.
"""

import asyncio

import pytest

from polariskit.access import QueryCache, QueryResult, QueryStatus


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def counting_loader(result: QueryResult):
    calls = []

    async def load() -> QueryResult:
        calls.append(1)
        return result

    return load, calls


class TestExpiry:
    """Tests for TTL behaviour."""

    @pytest.mark.asyncio
    async def test_hit_within_ttl(self) -> None:
        clock = FakeClock()
        cache = QueryCache(ttl_seconds=10, clock=clock)
        load, calls = counting_loader(QueryResult.success(["a"]))

        await cache.get_or_load(("k",), load)
        clock.now = 9.9
        result = await cache.get_or_load(("k",), load)

        assert result.data == ["a"]
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_expired_entry_reloads(self) -> None:
        clock = FakeClock()
        cache = QueryCache(ttl_seconds=10, clock=clock)
        load, calls = counting_loader(QueryResult.success(["a"]))

        await cache.get_or_load(("k",), load)
        clock.now = 10
        await cache.get_or_load(("k",), load)

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_partial_and_failed_results_not_stored(self) -> None:
        cache = QueryCache()
        partial, partial_calls = counting_loader(QueryResult.success([], ["x failed"]))
        failed, failed_calls = counting_loader(QueryResult.failure("boom"))

        first = await cache.get_or_load(("partial",), partial)
        await cache.get_or_load(("partial",), partial)
        await cache.get_or_load(("failed",), failed)
        await cache.get_or_load(("failed",), failed)

        assert first.status == QueryStatus.PARTIAL
        assert len(partial_calls) == 2
        assert len(failed_calls) == 2
        assert len(cache) == 0


class TestInFlight:
    """Tests for sharing concurrent loads."""

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_load(self) -> None:
        cache = QueryCache()
        release = asyncio.Event()
        calls = []

        async def load() -> QueryResult:
            calls.append(1)
            await release.wait()
            return QueryResult.success("value")

        waiters = asyncio.gather(*(cache.get_or_load(("k",), load) for _ in range(3)))
        await asyncio.sleep(0)
        release.set()
        results = await waiters

        assert len(calls) == 1
        assert [r.data for r in results] == ["value"] * 3

    @pytest.mark.asyncio
    async def test_snapshot_lifecycle(self) -> None:
        cache = QueryCache()
        release = asyncio.Event()

        async def load() -> QueryResult:
            await release.wait()
            return QueryResult.success(1)

        assert cache.snapshot(("k",)).status == QueryStatus.IDLE
        task = asyncio.create_task(cache.get_or_load(("k",), load))
        await asyncio.sleep(0)
        assert cache.snapshot(("k",)).status == QueryStatus.LOADING

        release.set()
        await task
        assert cache.snapshot(("k",)).status == QueryStatus.SUCCESS
        assert cache.snapshot(("k",)).settled

    @pytest.mark.asyncio
    async def test_invalidation_detaches_in_flight_load(self) -> None:
        cache = QueryCache()
        release = asyncio.Event()

        async def load() -> QueryResult:
            await release.wait()
            return QueryResult.success("old")

        task = asyncio.create_task(cache.get_or_load(("grants", "c", "r"), load))
        await asyncio.sleep(0)
        cache.invalidate("grants")
        release.set()

        assert (await task).data == "old"
        assert ("grants", "c", "r") not in cache


class TestInvalidation:
    """Tests for prefix invalidation."""

    @pytest.mark.asyncio
    async def test_prefix_invalidation(self) -> None:
        cache = QueryCache()
        for key in [("grants", "a", "r1"), ("grants", "b", "r1"), ("principals",)]:
            load, _ = counting_loader(QueryResult.success(key))
            await cache.get_or_load(key, load)

        assert cache.invalidate(("grants", "a")) == 1
        assert ("grants", "b", "r1") in cache
        assert cache.invalidate("grants") == 1
        assert len(cache) == 1
        assert ("principals",) in cache

    @pytest.mark.asyncio
    async def test_clear(self) -> None:
        cache = QueryCache()
        load, _ = counting_loader(QueryResult.success(1))
        await cache.get_or_load(("k",), load)

        cache.clear()

        assert len(cache) == 0
