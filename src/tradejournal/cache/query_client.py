"""
Cache-coherent query client.

One instance is constructed per application context and shared by every
service. It owns all cached entities for the session and is reset wholesale
only on sign-out.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional, TypeVar

from tradejournal.cache.entry import CacheEntry, CacheStatus
from tradejournal.cache.keys import QueryKey, matches
from tradejournal.cache.observer import Fetcher, QueryEvent, QueryObserver
from tradejournal.config.settings import Settings
from tradejournal.core.exceptions import AppError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


class QueryClient:
    """
    In-memory query cache.

    - at most one in-flight fetch per key; concurrent requests share it
    - fresh entries are served without a fetch, stale ones are served while
      a background refresh runs
    - a fetch writes its result only if its entry was not cancelled,
      removed or superseded in the meantime
    """

    def __init__(
        self,
        clock: Clock = time.monotonic,
        default_stale_seconds: float = 60.0,
        retry: int = 2,
        retry_base_delay: float = 0.5,
        retry_max_delay: float = 8.0,
    ):
        self._clock = clock
        self._default_stale = default_stale_seconds
        self._retry = retry
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay

        self._entries: dict[QueryKey, CacheEntry] = {}
        self._observers: list[QueryObserver] = []
        self._tasks: set[asyncio.Task] = set()
        self._active_mutations: set[str] = set()

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = time.monotonic) -> "QueryClient":
        return cls(
            clock=clock,
            default_stale_seconds=settings.default_stale_seconds,
            retry=settings.query_retry,
            retry_base_delay=settings.retry_base_delay_seconds,
            retry_max_delay=settings.retry_max_delay_seconds,
        )

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def now(self) -> float:
        return self._clock()

    def get_entry(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def get_query_data(self, key: QueryKey) -> Any:
        """Cached data for key, or None."""
        entry = self._entries.get(key)
        return entry.data if entry is not None and entry.has_data else None

    def get_query_status(self, key: QueryKey) -> CacheStatus:
        entry = self._entries.get(key)
        return entry.status(self.now()) if entry is not None else CacheStatus.IDLE

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def retry_delay(self, attempt: int) -> float:
        """Exponential backoff for retry number attempt (0-based), capped."""
        return min(self._retry_base_delay * (2 ** attempt), self._retry_max_delay)

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    def observe(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        enabled: bool = True,
        stale_after: Optional[float] = None,
        retry: Optional[int] = None,
        on_success: Optional[Callable[[Any], None]] = None,
    ) -> QueryObserver:
        """Create and mount an observer for key."""
        observer = QueryObserver(
            self,
            key,
            fetcher,
            enabled=enabled,
            stale_after=stale_after,
            retry=retry,
            on_success=on_success,
        )
        return observer.mount()

    async def fetch_query(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        stale_after: Optional[float] = None,
        retry: Optional[int] = None,
    ) -> Any:
        """Fetch key (joining a fetch already in flight) and return its data."""
        entry = self._entry_for(key, stale_after)
        task = self._start_fetch(entry, fetcher, retry)
        # One caller going away must not cancel a fetch other callers share
        return await asyncio.shield(task)

    async def ensure_query_data(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        stale_after: Optional[float] = None,
        retry: Optional[int] = None,
    ) -> Any:
        """
        Return cached data, fetching only when there is none.

        Stale data is returned immediately and refreshed in the background.
        """
        entry = self._entry_for(key, stale_after)
        if entry.has_data:
            if entry.in_flight is None and entry.is_stale(self.now()):
                self._start_fetch(entry, fetcher, retry)
            return entry.data
        return await asyncio.shield(self._start_fetch(entry, fetcher, retry))

    def refetch_in_background(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        stale_after: Optional[float] = None,
        retry: Optional[int] = None,
        force: bool = False,
    ) -> asyncio.Task:
        """Start (or join) a fetch without waiting for it."""
        entry = self._entry_for(key, stale_after)
        if force and entry.in_flight is not None:
            self._cancel_entry(entry)
        return self._start_fetch(entry, fetcher, retry)

    def on_focus(self) -> list[asyncio.Task]:
        """Refresh every mounted, enabled query; cached data stays visible meanwhile."""
        tasks = []
        for key, observer in self._active_by_key().items():
            tasks.append(
                self.refetch_in_background(
                    key, observer.fetcher, stale_after=observer.stale_after, retry=observer.retry
                )
            )
        logger.debug(f"Focus regained: refreshing {len(tasks)} queries")
        return tasks

    async def wait_idle(self) -> None:
        """Wait until no fetch is in flight."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    # -------------------------------------------------------------------------
    # Writes and invalidation
    # -------------------------------------------------------------------------

    def set_query_data(self, key: QueryKey, data: T, stale_after: Optional[float] = None) -> T:
        """Write data for key directly, marking it fresh."""
        entry = self._entry_for(key, stale_after)
        entry.write(data, self.now())
        self._notify(key, QueryEvent.UPDATED)
        return data

    def update_query_data(
        self,
        key: QueryKey,
        updater: Callable[[Optional[T]], Optional[T]],
    ) -> Optional[T]:
        """
        Apply updater to the latest cached value of key (None when absent).

        Returning None from updater leaves the cache untouched.
        """
        new_data = updater(self.get_query_data(key))
        if new_data is None:
            return None
        return self.set_query_data(key, new_data)

    def invalidate_queries(self, prefix: QueryKey = (), refetch: bool = True) -> list[asyncio.Task]:
        """
        Mark every entry under prefix stale.

        Entries with a mounted, enabled observer are refetched in the
        background immediately; the rest refetch on their next access.
        """
        for key, entry in self._matching(prefix):
            entry.invalidated = True
            self._notify(key, QueryEvent.UPDATED)

        if not refetch:
            return []

        tasks = []
        for key, observer in self._active_by_key().items():
            if matches(key, prefix):
                tasks.append(
                    self.refetch_in_background(
                        key,
                        observer.fetcher,
                        stale_after=observer.stale_after,
                        retry=observer.retry,
                        force=True,
                    )
                )
        return tasks

    def cancel_queries(self, prefix: QueryKey = ()) -> None:
        """Discard the results of fetches in flight under prefix when they arrive."""
        for _, entry in self._matching(prefix):
            if entry.in_flight is not None:
                self._cancel_entry(entry)

    def remove_queries(self, prefix: QueryKey = ()) -> None:
        """Evict entries under prefix; late results for them are discarded."""
        for key, entry in self._matching(prefix):
            entry.generation += 1
            entry.in_flight = None
            del self._entries[key]
            self._notify(key, QueryEvent.REMOVED)

    def clear(self) -> None:
        """Evict every entry. Mounted observers stay mounted and report no data."""
        count = len(self._entries)
        self.remove_queries(())
        logger.info(f"Query cache cleared ({count} entries)")

    # -------------------------------------------------------------------------
    # Mutation scopes
    # -------------------------------------------------------------------------

    def is_mutating(self, scope: str) -> bool:
        return scope in self._active_mutations

    def begin_mutation(self, scope: str) -> None:
        self._active_mutations.add(scope)

    def end_mutation(self, scope: str) -> None:
        self._active_mutations.discard(scope)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _entry_for(self, key: QueryKey, stale_after: Optional[float]) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(
                key=key,
                stale_after=self._default_stale if stale_after is None else stale_after,
            )
            self._entries[key] = entry
        elif stale_after is not None:
            entry.stale_after = stale_after
        return entry

    def _matching(self, prefix: QueryKey) -> list[tuple[QueryKey, CacheEntry]]:
        return [(key, entry) for key, entry in self._entries.items() if matches(key, prefix)]

    def _active_by_key(self) -> dict[QueryKey, QueryObserver]:
        active: dict[QueryKey, QueryObserver] = {}
        for observer in self._observers:
            if observer.is_active and observer.key not in active:
                active[observer.key] = observer
        return active

    def _cancel_entry(self, entry: CacheEntry) -> None:
        entry.generation += 1
        entry.in_flight = None
        self._notify(entry.key, QueryEvent.UPDATED)

    def _is_current(self, entry: CacheEntry, generation: int) -> bool:
        return self._entries.get(entry.key) is entry and entry.generation == generation

    def _start_fetch(
        self,
        entry: CacheEntry,
        fetcher: Fetcher,
        retry: Optional[int],
    ) -> asyncio.Task:
        if entry.in_flight is not None:
            return entry.in_flight

        entry.generation += 1
        task = asyncio.ensure_future(self._run_fetch(entry, fetcher, entry.generation, retry))
        entry.in_flight = task
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        self._notify(entry.key, QueryEvent.FETCHING)
        return task

    async def _run_fetch(
        self,
        entry: CacheEntry,
        fetcher: Fetcher,
        generation: int,
        retry: Optional[int],
    ) -> Any:
        task = asyncio.current_task()
        event: Optional[QueryEvent] = None
        try:
            data = await self._call_with_retry(entry, fetcher, generation, retry)
            if self._is_current(entry, generation):
                entry.write(data, self.now())
                event = QueryEvent.SUCCESS
            else:
                logger.debug(f"Discarding late result for {entry.key}")
            return data
        except Exception as e:
            if self._is_current(entry, generation):
                entry.error = e
                event = QueryEvent.ERROR
                logger.warning(f"Query {entry.key} failed: {e}")
            raise
        finally:
            if entry.in_flight is task:
                entry.in_flight = None
            if event is not None:
                self._notify(entry.key, event)

    async def _call_with_retry(
        self,
        entry: CacheEntry,
        fetcher: Fetcher,
        generation: int,
        retry: Optional[int],
    ) -> Any:
        max_retries = self._retry if retry is None else retry
        attempt = 0
        while True:
            try:
                return await fetcher()
            except AppError as e:
                if not e.retryable or attempt >= max_retries or not self._is_current(entry, generation):
                    raise
                delay = self.retry_delay(attempt)
                logger.info(f"Retrying {entry.key} in {delay:g}s: {e.message}")
                attempt += 1
                await asyncio.sleep(delay)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled():
            # Retrieve so background failures are not reported as unhandled;
            # the error itself is already recorded on the entry.
            task.exception()

    def _attach(self, observer: QueryObserver) -> None:
        self._observers.append(observer)

    def _detach(self, observer: QueryObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, key: QueryKey, event: QueryEvent) -> None:
        for observer in list(self._observers):
            if observer.key == key:
                observer._on_cache_event(event)
