"""Tests for the query cache, observers and mutations."""

import asyncio

import pytest

from kerzenwelt.client.query_cache import (
    Mutation,
    QueryCache,
    QueryOptions,
    QueryStatus,
)

KEY = ("settings",)
ITEM_KEY = ("settings", "storeName")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingFetch:
    """Query function that counts calls and returns the call number."""

    def __init__(self, fail: bool = False):
        self.calls = 0
        self.fail = fail

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("backend unavailable")
        return self.calls


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def cache(clock):
    cache = QueryCache(clock=clock)
    yield cache
    cache.close()
    await asyncio.sleep(0)


class TestFetchQuery:
    """Imperative reads with a staleness window."""

    async def test_serves_cached_data_within_stale_time(self, cache, clock):
        fetch = CountingFetch()

        first = await cache.fetch_query(KEY, fetch, stale_time=300)
        clock.advance(299)
        second = await cache.fetch_query(KEY, fetch, stale_time=300)

        assert first.data == second.data == 1
        assert fetch.calls == 1

    async def test_refetches_after_stale_time(self, cache, clock):
        fetch = CountingFetch()

        await cache.fetch_query(KEY, fetch, stale_time=300)
        clock.advance(300)
        result = await cache.fetch_query(KEY, fetch, stale_time=300)

        assert result.data == 2
        assert fetch.calls == 2

    async def test_zero_stale_time_always_refetches(self, cache):
        fetch = CountingFetch()

        await cache.fetch_query(ITEM_KEY, fetch)
        await cache.fetch_query(ITEM_KEY, fetch)

        assert fetch.calls == 2

    async def test_error_is_returned_not_raised(self, cache):
        result = await cache.fetch_query(KEY, CountingFetch(fail=True))

        assert result.status is QueryStatus.ERROR
        assert result.is_error
        assert isinstance(result.error, RuntimeError)
        assert result.data is None
        assert not result.is_loading

    async def test_success_after_error_clears_error(self, cache):
        await cache.fetch_query(KEY, CountingFetch(fail=True))

        result = await cache.fetch_query(KEY, CountingFetch())

        assert result.is_success
        assert result.error is None

    async def test_failed_refetch_keeps_previous_data(self, cache):
        await cache.fetch_query(KEY, CountingFetch())

        result = await cache.fetch_query(KEY, CountingFetch(fail=True))

        assert result.is_error
        assert result.data == 1

    async def test_concurrent_fetches_are_deduplicated(self, cache):
        fetch = CountingFetch()

        results = await asyncio.gather(
            cache.fetch_query(KEY, fetch),
            cache.fetch_query(KEY, fetch),
            cache.fetch_query(KEY, fetch),
        )

        assert fetch.calls == 1
        assert [r.data for r in results] == [1, 1, 1]


class TestInvalidation:
    """Exact-key invalidation."""

    async def test_marks_entry_stale(self, cache):
        fetch = CountingFetch()
        await cache.fetch_query(KEY, fetch, stale_time=300)

        invalidated = cache.invalidate_queries(KEY)
        result = await cache.fetch_query(KEY, fetch, stale_time=300)

        assert invalidated == [KEY]
        assert fetch.calls == 2
        assert result.data == 2
        assert not result.is_invalidated

    async def test_only_exact_key_is_invalidated(self, cache):
        await cache.fetch_query(KEY, CountingFetch())
        await cache.fetch_query(ITEM_KEY, CountingFetch())

        cache.invalidate_queries(KEY)

        assert cache.get_query_state(KEY).is_invalidated
        assert not cache.get_query_state(ITEM_KEY).is_invalidated

    async def test_unknown_key_is_ignored(self, cache):
        assert cache.invalidate_queries(("settings", "unknown")) == []
        assert ("settings", "unknown") not in cache

    async def test_does_not_refetch_without_observers(self, cache):
        fetch = CountingFetch()
        await cache.fetch_query(KEY, fetch)

        cache.invalidate_queries(KEY)
        await cache.settle()

        assert fetch.calls == 1
        assert cache.get_query_data(KEY) == 1

    async def test_refetches_in_background_for_mounted_observer(self, cache):
        fetch = CountingFetch()
        observer = cache.observe(KEY, fetch)
        await observer.wait()

        cache.invalidate_queries(KEY)
        assert observer.result.is_invalidated
        assert observer.result.data == 1

        await cache.settle()

        assert fetch.calls == 2
        assert observer.result.data == 2
        assert not observer.result.is_invalidated

    async def test_invalidation_during_fetch_discards_older_response(self, cache):
        gate = asyncio.Event()
        calls = 0

        async def fetch():
            nonlocal calls
            calls += 1
            if calls == 1:
                await gate.wait()
                return "before-write"
            return "after-write"

        pending = asyncio.create_task(cache.fetch_query(KEY, fetch))
        while calls == 0:
            await asyncio.sleep(0)

        cache.invalidate_queries(KEY)
        gate.set()
        result = await pending

        assert calls == 2
        assert result.data == "after-write"
        assert not result.is_invalidated


class TestObservers:
    """Mounted readers: mount, focus, polling, unmount."""

    async def test_mount_starts_background_fetch(self, cache):
        fetch = CountingFetch()

        observer = cache.observe(KEY, fetch)

        assert observer.result.is_loading
        assert observer.result.data is None
        result = await observer.wait()
        assert result.data == 1
        assert not result.is_loading

    async def test_mount_skips_fetch_when_data_is_fresh(self, cache):
        fetch = CountingFetch()
        await cache.fetch_query(KEY, fetch)

        observer = cache.observe(KEY, fetch, QueryOptions(stale_time=300))
        await cache.settle()

        assert fetch.calls == 1
        assert observer.result.data == 1

    async def test_mount_refetches_stale_data(self, cache):
        fetch = CountingFetch()
        await cache.fetch_query(ITEM_KEY, fetch)

        observer = cache.observe(ITEM_KEY, fetch, QueryOptions(stale_time=0))
        await observer.wait()

        assert fetch.calls == 2

    async def test_refetch_on_mount_disabled_keeps_existing_data(self, cache):
        fetch = CountingFetch()
        await cache.fetch_query(ITEM_KEY, fetch)

        cache.observe(ITEM_KEY, fetch, QueryOptions(refetch_on_mount=False))
        await cache.settle()

        assert fetch.calls == 1

    async def test_disabled_observer_never_fetches(self, cache):
        fetch = CountingFetch()

        observer = cache.observe(KEY, fetch, QueryOptions(enabled=False))
        await cache.settle()
        cache.invalidate_queries(KEY)
        await cache.settle()

        assert fetch.calls == 0
        assert observer.result.status is QueryStatus.PENDING
        assert not observer.result.is_loading

    async def test_focus_refetches_stale_entries(self, cache):
        fetch = CountingFetch()
        observer = cache.observe(ITEM_KEY, fetch, QueryOptions(stale_time=0))
        await observer.wait()

        started = cache.focus()
        await cache.settle()

        assert started == 1
        assert fetch.calls == 2

    async def test_focus_respects_option_and_freshness(self, cache):
        no_focus = CountingFetch()
        fresh = CountingFetch()
        cache.observe(ITEM_KEY, no_focus, QueryOptions(refetch_on_window_focus=False))
        cache.observe(KEY, fresh, QueryOptions(stale_time=300))
        await cache.settle()

        assert cache.focus() == 0
        assert no_focus.calls == 1
        assert fresh.calls == 1

    async def test_polling_refetches_until_unmounted(self, cache):
        fetch = CountingFetch()

        observer = cache.observe(ITEM_KEY, fetch, QueryOptions(refetch_interval=0.01))
        await asyncio.sleep(0.1)
        observer.unmount()
        await cache.settle()
        calls_after_unmount = fetch.calls
        await asyncio.sleep(0.05)

        assert calls_after_unmount >= 3
        assert fetch.calls == calls_after_unmount

    async def test_unmounting_last_observer_cancels_request(self, cache):
        started = asyncio.Event()

        async def never_returns():
            started.set()
            await asyncio.Event().wait()

        observer = cache.observe(KEY, never_returns)
        await started.wait()

        observer.unmount()
        await asyncio.sleep(0.01)

        result = cache.get_query_state(KEY)
        assert not result.is_fetching
        assert result.status is QueryStatus.PENDING

    async def test_request_survives_while_another_observer_is_mounted(self, cache):
        gate = asyncio.Event()

        async def fetch():
            await gate.wait()
            return "value"

        first = cache.observe(KEY, fetch)
        second = cache.observe(KEY, fetch)
        await asyncio.sleep(0)

        first.unmount()
        gate.set()
        result = await second.wait()

        assert result.data == "value"

    async def test_close_unmounts_everything(self, cache):
        fetch = CountingFetch()
        observer = cache.observe(ITEM_KEY, fetch, QueryOptions(refetch_interval=0.01))
        await observer.wait()

        cache.close()
        calls = fetch.calls
        await asyncio.sleep(0.05)

        assert not observer.is_mounted
        assert fetch.calls == calls


class TestMutation:
    """Writes with success/error callbacks."""

    async def test_success_runs_callback_with_result(self):
        seen = []

        async def save(key, value):
            return f"{key}={value}"

        mutation = Mutation(save, on_success=lambda data, variables: seen.append((data, variables)))

        result = await mutation.mutate_async(key="storeName", value="Kerzenwelt")

        assert result == "storeName=Kerzenwelt"
        assert seen == [("storeName=Kerzenwelt", {"key": "storeName", "value": "Kerzenwelt"})]
        assert mutation.data == result
        assert not mutation.is_pending

    async def test_is_pending_while_running(self):
        gate = asyncio.Event()

        async def save():
            await gate.wait()
            return True

        mutation = Mutation(save)
        task = asyncio.create_task(mutation.mutate_async())
        await asyncio.sleep(0)

        assert mutation.is_pending
        gate.set()
        await task
        assert not mutation.is_pending

    async def test_error_runs_callback_and_reraises(self):
        errors = []

        async def save():
            raise ValueError("boom")

        mutation = Mutation(save, on_error=lambda error, variables: errors.append(error))

        with pytest.raises(ValueError):
            await mutation.mutate_async()

        assert len(errors) == 1
        assert isinstance(mutation.error, ValueError)
        assert not mutation.is_pending

    async def test_mutate_does_not_raise(self):
        async def save():
            raise ValueError("boom")

        mutation = Mutation(save)

        assert await mutation.mutate() is None
        assert isinstance(mutation.error, ValueError)
