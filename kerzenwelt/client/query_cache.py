"""Process-wide cache for API reads, addressed by structured query keys.

A query key is a tuple of strings such as ``("settings",)`` or
``("settings", "storeName")``. Each key owns one cache entry. Reads go through
either :meth:`QueryCache.fetch_query` (imperative, honours a staleness window)
or a mounted :class:`QueryObserver` (background refetch on mount, on window
focus and on a polling interval). Writes go through :class:`Mutation` and
then call :meth:`QueryCache.invalidate_queries` for the exact keys they
touched.

Everything runs on one event loop; the cache is plain shared state and needs
no locks. Fetch failures are stored in the entry's error slot and never
raised into readers.
"""

import asyncio
import enum
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueryKey = tuple[str, ...]
QueryFn = Callable[[], Awaitable[Any]]


class QueryStatus(str, enum.Enum):
    """Lifecycle status of a cache entry."""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QueryOptions:
    """Per-observer read options."""

    stale_time: float = 0.0
    refetch_on_window_focus: bool = True
    refetch_on_mount: bool = True
    refetch_interval: float | None = None
    enabled: bool = True


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Immutable snapshot of a cache entry."""

    data: T | None = None
    error: Exception | None = None
    status: QueryStatus = QueryStatus.PENDING
    is_fetching: bool = False
    data_updated_at: float | None = None
    is_invalidated: bool = False

    @property
    def is_loading(self) -> bool:
        """True while the first fetch is in flight."""
        return self.status is QueryStatus.PENDING and self.is_fetching

    @property
    def is_success(self) -> bool:
        return self.status is QueryStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is QueryStatus.ERROR


class Query:
    """A single cache entry and its in-flight fetch."""

    def __init__(self, cache: "QueryCache", key: QueryKey, fn: QueryFn):
        self.cache = cache
        self.key = key
        self.fn = fn

        self.data: Any = None
        self.error: Exception | None = None
        self.status = QueryStatus.PENDING
        self.data_updated_at: float | None = None
        self.is_invalidated = False

        self.observers: list["QueryObserver"] = []
        self._task: asyncio.Task | None = None
        self._waiters = 0
        self._invalidation_seq = 0

    @property
    def is_fetching(self) -> bool:
        return self._task is not None and not self._task.done()

    def result(self) -> QueryResult:
        """Snapshot the current state."""
        return QueryResult(
            data=self.data,
            error=self.error,
            status=self.status,
            is_fetching=self.is_fetching,
            data_updated_at=self.data_updated_at,
            is_invalidated=self.is_invalidated,
        )

    def is_stale(self, stale_time: float) -> bool:
        """Check whether cached data is older than ``stale_time`` seconds."""
        if self.data_updated_at is None or self.is_invalidated:
            return True
        return self.cache.clock() - self.data_updated_at >= stale_time

    def start_fetch(self) -> asyncio.Task:
        """Start a background fetch, or return the one already in flight."""
        if not self.is_fetching:
            self._task = asyncio.get_running_loop().create_task(
                self._execute(),
                name=f"query:{'/'.join(self.key)}",
            )
        return self._task

    async def fetch(self) -> QueryResult:
        """Fetch (joining any in-flight request) and return the new state."""
        task = self.start_fetch()
        self._waiters += 1
        try:
            await asyncio.shield(task)
        finally:
            self._waiters -= 1
        return self.result()

    async def _execute(self) -> None:
        while True:
            seq = self._invalidation_seq
            try:
                data = await self.fn()
            except asyncio.CancelledError:
                logger.debug(f"Query {self.key} cancelled")
                raise
            except Exception as e:
                logger.warning(f"Query {self.key} failed: {type(e).__name__}: {e}")
                self.error = e
                self.status = QueryStatus.ERROR
                return

            # A write landed while this request was in flight; its data may predate it
            if seq != self._invalidation_seq:
                logger.debug(f"Query {self.key} invalidated during fetch, refetching")
                continue

            self.data = data
            self.error = None
            self.status = QueryStatus.SUCCESS
            self.data_updated_at = self.cache.clock()
            self.is_invalidated = False
            return

    def invalidate(self) -> None:
        """Mark stale and refetch in the background if anyone is watching."""
        self.is_invalidated = True
        self._invalidation_seq += 1
        if any(observer.options.enabled for observer in self.observers):
            self.start_fetch()

    def add_observer(self, observer: "QueryObserver") -> None:
        self.observers.append(observer)

    def remove_observer(self, observer: "QueryObserver") -> None:
        if observer in self.observers:
            self.observers.remove(observer)
        # Request lifetime is scoped to whoever asked for it
        if not self.observers and self._waiters == 0 and self.is_fetching:
            self._task.cancel()

    def cancel(self) -> None:
        if self.is_fetching:
            self._task.cancel()


class QueryObserver(Generic[T]):
    """A mounted reader of one cache entry.

    Mounting may start a fetch and a polling loop; unmounting stops them.
    Reading :attr:`result` never blocks.
    """

    def __init__(self, query: Query, options: QueryOptions):
        self.query = query
        self.options = options
        self.is_mounted = False
        self._poll_task: asyncio.Task | None = None

    @property
    def key(self) -> QueryKey:
        return self.query.key

    @property
    def result(self) -> QueryResult[T]:
        return self.query.result()

    def mount(self) -> None:
        """Register with the entry and schedule the initial refetch."""
        if self.is_mounted:
            return
        self.is_mounted = True
        self.query.add_observer(self)

        if not self.options.enabled:
            return

        query = self.query
        if query.data_updated_at is None or (
            self.options.refetch_on_mount and query.is_stale(self.options.stale_time)
        ):
            query.start_fetch()

        if self.options.refetch_interval:
            self._poll_task = asyncio.get_running_loop().create_task(
                self._poll(self.options.refetch_interval),
                name=f"poll:{'/'.join(query.key)}",
            )

    async def _poll(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            logger.debug(f"Polling {self.query.key}")
            self.query.start_fetch()

    async def refetch(self) -> QueryResult[T]:
        """Fetch now, regardless of staleness."""
        return await self.query.fetch()

    async def wait(self) -> QueryResult[T]:
        """Wait for the in-flight fetch, if any, and return the result."""
        if self.query.is_fetching:
            return await self.query.fetch()
        return self.result

    def unmount(self) -> None:
        """Stop polling and release the entry."""
        if not self.is_mounted:
            return
        self.is_mounted = False
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
        self.query.remove_observer(self)


class QueryCache:
    """Process-wide store of query entries keyed by :data:`QueryKey`."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._queries: dict[QueryKey, Query] = {}

    def build(self, key: QueryKey, fn: QueryFn) -> Query:
        """Get or create the entry for ``key``, using ``fn`` for future fetches."""
        key = tuple(key)
        query = self._queries.get(key)
        if query is None:
            query = Query(self, key, fn)
            self._queries[key] = query
        else:
            query.fn = fn
        return query

    def get_query_state(self, key: QueryKey) -> QueryResult | None:
        query = self._queries.get(tuple(key))
        return query.result() if query else None

    def get_query_data(self, key: QueryKey) -> Any:
        query = self._queries.get(tuple(key))
        return query.data if query else None

    async def fetch_query(
        self,
        key: QueryKey,
        fn: QueryFn,
        stale_time: float = 0.0,
    ) -> QueryResult:
        """Return fresh cached data, or fetch it.

        Cached data younger than ``stale_time`` seconds is returned without a
        network round trip.
        """
        query = self.build(key, fn)
        if query.status is QueryStatus.SUCCESS and not query.is_stale(stale_time):
            return query.result()
        return await query.fetch()

    def observe(
        self,
        key: QueryKey,
        fn: QueryFn,
        options: QueryOptions | None = None,
    ) -> QueryObserver:
        """Mount an observer on ``key``. Must be called from a running event loop."""
        observer = QueryObserver(self.build(key, fn), options or QueryOptions())
        observer.mount()
        return observer

    def invalidate_queries(self, key: QueryKey) -> list[QueryKey]:
        """Invalidate exactly ``key``; other entries sharing its prefix are untouched.

        Returns the keys that were invalidated (empty if nothing is cached).
        """
        query = self._queries.get(tuple(key))
        if query is None:
            return []
        query.invalidate()
        logger.debug(f"Invalidated {query.key}")
        return [query.key]

    def focus(self) -> int:
        """Signal that the window regained focus. Returns the number of refetches started."""
        started = 0
        for query in list(self._queries.values()):
            if any(
                observer.options.enabled
                and observer.options.refetch_on_window_focus
                and query.is_stale(observer.options.stale_time)
                for observer in query.observers
            ):
                query.start_fetch()
                started += 1
        return started

    async def settle(self) -> None:
        """Wait until no fetch is in flight."""
        while True:
            tasks = [query._task for query in self._queries.values() if query.is_fetching]
            if not tasks:
                return
            await asyncio.wait(tasks)

    def close(self) -> None:
        """Unmount every observer and cancel outstanding fetches."""
        for query in list(self._queries.values()):
            for observer in list(query.observers):
                observer.unmount()
            query.cancel()

    def __len__(self) -> int:
        return len(self._queries)

    def __contains__(self, key: QueryKey) -> bool:
        return tuple(key) in self._queries


class Mutation(Generic[T]):
    """An async write with success/error callbacks and observable pending state."""

    def __init__(
        self,
        fn: Callable[..., Awaitable[T]],
        on_success: Callable[[T, dict[str, Any]], None] | None = None,
        on_error: Callable[[Exception, dict[str, Any]], None] | None = None,
    ):
        self.fn = fn
        self.on_success = on_success
        self.on_error = on_error
        self.data: T | None = None
        self.error: Exception | None = None
        self._pending = 0

    @property
    def is_pending(self) -> bool:
        return self._pending > 0

    async def mutate_async(self, **variables: Any) -> T:
        """Run the mutation; errors are passed to ``on_error`` and then re-raised."""
        self._pending += 1
        self.error = None
        try:
            data = await self.fn(**variables)
        except Exception as e:
            self.error = e
            if self.on_error:
                self.on_error(e, variables)
            raise
        finally:
            self._pending -= 1

        self.data = data
        if self.on_success:
            self.on_success(data, variables)
        return data

    async def mutate(self, **variables: Any) -> T | None:
        """Run the mutation without raising; a failure is left in :attr:`error`."""
        try:
            return await self.mutate_async(**variables)
        except Exception:
            # Already reported through on_error
            return None
