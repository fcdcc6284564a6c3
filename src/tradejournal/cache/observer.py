"""Query observers: the mounted consumers of cache entries."""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, Optional, TypeVar

from tradejournal.cache.entry import CacheStatus
from tradejournal.cache.keys import QueryKey

if TYPE_CHECKING:
    from tradejournal.cache.query_client import QueryClient

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[Any]]
ResultListener = Callable[["QueryResult"], None]


class QueryEvent(str, Enum):
    """Changes the client reports to observers of a key."""

    UPDATED = "updated"
    FETCHING = "fetching"
    SUCCESS = "success"
    ERROR = "error"
    REMOVED = "removed"


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Snapshot of a query as seen by one observer."""

    data: Optional[T] = None
    status: CacheStatus = CacheStatus.IDLE
    error: Optional[Exception] = None
    is_loading: bool = False  # fetching with nothing cached yet
    is_fetching: bool = False
    is_enabled: bool = True

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def has_data(self) -> bool:
        return self.data is not None


class QueryObserver(Generic[T]):
    """
    A mounted consumer of one query key.

    Mounting fetches when nothing usable is cached; a stale entry is served
    as-is while a background refresh runs. A disabled observer never
    fetches and reports no data, no error and not loading.
    """

    def __init__(
        self,
        client: "QueryClient",
        key: QueryKey,
        fetcher: Fetcher,
        enabled: bool = True,
        stale_after: Optional[float] = None,
        retry: Optional[int] = None,
        on_success: Optional[Callable[[T], None]] = None,
    ):
        self._client = client
        self._key = key
        self._fetcher = fetcher
        self._enabled = enabled
        self._stale_after = stale_after
        self._retry = retry
        self._on_success = on_success
        self._mounted = False
        self._listeners: list[ResultListener] = []

    @property
    def key(self) -> QueryKey:
        return self._key

    @property
    def fetcher(self) -> Fetcher:
        return self._fetcher

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def retry(self) -> Optional[int]:
        return self._retry

    @property
    def stale_after(self) -> Optional[float]:
        return self._stale_after

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def is_active(self) -> bool:
        """Mounted and enabled."""
        return self._mounted and self._enabled

    def mount(self) -> "QueryObserver[T]":
        if not self._mounted:
            self._mounted = True
            self._client._attach(self)
            self._maybe_fetch()
        return self

    def unmount(self) -> None:
        if self._mounted:
            self._mounted = False
            self._client._detach(self)

    def set_options(
        self,
        *,
        key: Optional[QueryKey] = None,
        fetcher: Optional[Fetcher] = None,
        enabled: Optional[bool] = None,
    ) -> None:
        """
        Change what this observer watches.

        Switching keys leaves any fetch for the old key running; its result
        lands in the old key's entry and never in the new one.
        """
        changed = False
        if key is not None and key != self._key:
            self._key = key
            changed = True
        if fetcher is not None:
            self._fetcher = fetcher
        if enabled is not None and enabled != self._enabled:
            self._enabled = enabled
            changed = True
        if changed:
            self._maybe_fetch()
            self._emit()

    @property
    def result(self) -> QueryResult[T]:
        if not self._enabled:
            return QueryResult(is_enabled=False)

        entry = self._client.get_entry(self._key)
        if entry is None:
            return QueryResult()

        fetching = entry.in_flight is not None
        return QueryResult(
            data=entry.data if entry.has_data else None,
            status=entry.status(self._client.now()),
            error=entry.error,
            is_loading=fetching and not entry.has_data,
            is_fetching=fetching,
        )

    def subscribe(self, listener: ResultListener) -> Callable[[], None]:
        """Call listener with the new result on every change; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def refetch(self) -> QueryResult[T]:
        """Fetch now (joining any fetch in flight) and return the settled result."""
        if not self._enabled:
            return self.result
        task = self._client.refetch_in_background(
            self._key, self._fetcher, stale_after=self._stale_after, retry=self._retry
        )
        # Failures are recorded on the entry and surface through the result
        await asyncio.wait({task})
        return self.result

    def _maybe_fetch(self) -> None:
        if not self.is_active:
            return
        entry = self._client.get_entry(self._key)
        if entry is None or (entry.in_flight is None and entry.is_stale(self._client.now())):
            self._client.refetch_in_background(
                self._key, self._fetcher, stale_after=self._stale_after, retry=self._retry
            )

    def _on_cache_event(self, event: QueryEvent) -> None:
        if event is QueryEvent.SUCCESS and self._on_success is not None and self._enabled:
            self._on_success(self._client.get_query_data(self._key))
        self._emit()

    def _emit(self) -> None:
        if not self._listeners:
            return
        result = self.result
        for listener in list(self._listeners):
            listener(result)
