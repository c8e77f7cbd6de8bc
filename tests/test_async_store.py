"""
==============================================================================
Async Catalog Store Tests
==============================================================================

The asyncio store must honor the same staleness, retry, coalescing and
notification rules as the threaded one.

==============================================================================
"""

import asyncio
from typing import List, Optional

from storefront.catalog.models import CatalogStatus
from storefront.catalog.store import AsyncCatalogStore

from tests.conftest import AsyncScriptedFetcher, ScriptedFetcher


class GatedAsyncFetcher:
    """Async fetcher that waits on a gate and tracks overlapping calls."""

    def __init__(self, products):
        self._products = list(products)
        self.gate: Optional[asyncio.Event] = None
        self.calls = 0
        self.active = 0
        self.max_active = 0

    async def fetch(self):
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self.gate.wait()
        finally:
            self.active -= 1
        return list(self._products)


def build_store(fetcher, clock, notifier, delays: List[float], **options) -> AsyncCatalogStore:
    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    return AsyncCatalogStore(fetcher, notifier=notifier, clock=clock, sleep=fake_sleep, **options)


class TestAsyncStore:
    """Tests for AsyncCatalogStore."""

    def test_load_within_window_fetches_once(self, products, clock, notifier):
        """Second load() in the window is served from cache."""
        fetcher = AsyncScriptedFetcher(products)
        store = build_store(fetcher, clock, notifier, [])

        async def scenario():
            await store.load()
            clock.advance(120)
            return await store.load()

        snapshot = asyncio.run(scenario())

        assert fetcher.calls == 1
        assert snapshot.status == CatalogStatus.SUCCESS

    def test_load_after_window_fetches_again(self, products, clock, notifier):
        """An expired snapshot is refreshed."""
        fetcher = AsyncScriptedFetcher(products)
        store = build_store(fetcher, clock, notifier, [])

        async def scenario():
            await store.load()
            clock.advance(300)
            await store.load()

        asyncio.run(scenario())
        assert fetcher.calls == 2

    def test_concurrent_refetches_coalesce(self, products, clock, notifier):
        """Callers gathered together share one fetch."""
        fetcher = AsyncScriptedFetcher(products)
        store = build_store(fetcher, clock, notifier, [])

        async def scenario():
            return await asyncio.gather(store.refetch(), store.refetch(), store.load())

        results = asyncio.run(scenario())

        assert fetcher.calls == 1
        assert results[0] is results[1] is results[2]

    def test_fail_once_then_succeed(self, products, fetch_error, clock, notifier):
        """The retry's data wins."""
        fetcher = AsyncScriptedFetcher(fetch_error, products)
        delays: List[float] = []
        store = build_store(fetcher, clock, notifier, delays)

        snapshot = asyncio.run(store.load())

        assert snapshot.status == CatalogStatus.SUCCESS
        assert list(snapshot.products) == products
        assert delays == [1.0]
        assert notifier.messages == []

    def test_fail_twice_notifies_once(self, fetch_error, clock, notifier):
        """Two attempts, error status, exactly one notification."""
        fetcher = AsyncScriptedFetcher(fetch_error)
        store = build_store(fetcher, clock, notifier, [])

        async def scenario():
            snapshot = await asyncio.gather(store.load(), store.load())
            _ = store.snapshot.status
            return snapshot

        results = asyncio.run(scenario())

        assert all(result.status == CatalogStatus.ERROR for result in results)
        assert fetcher.calls == 2
        assert len(notifier.messages) == 1

    def test_blocking_fetcher_runs_in_thread(self, products, clock, notifier):
        """A synchronous fetcher is accepted."""
        fetcher = ScriptedFetcher(products)
        store = build_store(fetcher, clock, notifier, [])

        snapshot = asyncio.run(store.load())

        assert snapshot.status == CatalogStatus.SUCCESS
        assert fetcher.calls == 1

    def test_cancelled_caller_does_not_cancel_fetch(self, products, clock, notifier):
        """The shared fetch completes even if one waiter goes away."""
        fetcher = AsyncScriptedFetcher(products)
        store = build_store(fetcher, clock, notifier, [])

        async def scenario():
            waiter = asyncio.ensure_future(store.load())
            await asyncio.sleep(0)
            waiter.cancel()
            return await store.load()

        snapshot = asyncio.run(scenario())

        assert snapshot.status == CatalogStatus.SUCCESS
        assert fetcher.calls == 1

    def test_reset_discards_in_flight_result(self, products, clock, notifier):
        """A fetch started before reset() does not repopulate the cache."""
        fetcher = AsyncScriptedFetcher(products)
        store = build_store(fetcher, clock, notifier, [])

        async def scenario():
            pending = asyncio.ensure_future(store.load())
            await asyncio.sleep(0)
            store.reset()
            return await pending

        result = asyncio.run(scenario())

        assert result.status == CatalogStatus.IDLE
        assert store.status == CatalogStatus.IDLE
        assert store.products == ()

    def test_load_after_reset_waits_for_old_fetch(self, products, clock, notifier):
        """A load() right after reset() never overlaps the discarded fetch."""
        fetcher = GatedAsyncFetcher(products)
        store = build_store(fetcher, clock, notifier, [])

        async def scenario():
            fetcher.gate = asyncio.Event()
            first = asyncio.ensure_future(store.load())
            for _ in range(3):
                await asyncio.sleep(0)
            assert fetcher.calls == 1

            store.reset()
            second = asyncio.ensure_future(store.load())
            for _ in range(3):
                await asyncio.sleep(0)
            assert fetcher.calls == 1

            fetcher.gate.set()
            return await first, await second

        first, second = asyncio.run(scenario())

        assert fetcher.calls == 2
        assert fetcher.max_active == 1
        assert first.status == CatalogStatus.IDLE
        assert second.status == CatalogStatus.SUCCESS
        assert store.status == CatalogStatus.SUCCESS
