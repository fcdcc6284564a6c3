"""Cache entry state for one query key."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from tradejournal.cache.keys import QueryKey

T = TypeVar("T")


class CacheStatus(str, Enum):
    """Lifecycle of a cache entry."""

    IDLE = "idle"
    LOADING = "loading"
    FRESH = "fresh"
    STALE = "stale"
    ERROR = "error"


@dataclass
class CacheEntry(Generic[T]):
    """
    One cached query.

    generation is bumped whenever the entry is cancelled or a new fetch
    starts; a fetch only writes its result while its generation is current.
    """

    key: QueryKey
    stale_after: float
    data: Optional[T] = None
    has_data: bool = False
    fetched_at: Optional[float] = None
    error: Optional[Exception] = None
    invalidated: bool = False
    generation: int = 0
    in_flight: Optional["asyncio.Future[Any]"] = field(default=None, repr=False)

    @property
    def is_fetching(self) -> bool:
        return self.in_flight is not None

    def is_stale(self, now: float) -> bool:
        """True when the entry has no data, was invalidated or has aged out."""
        if not self.has_data or self.invalidated or self.fetched_at is None:
            return True
        return now - self.fetched_at >= self.stale_after

    def status(self, now: float) -> CacheStatus:
        if self.in_flight is not None:
            return CacheStatus.LOADING
        if self.error is not None:
            return CacheStatus.ERROR
        if not self.has_data:
            return CacheStatus.IDLE
        return CacheStatus.STALE if self.is_stale(now) else CacheStatus.FRESH

    def write(self, data: T, now: float) -> None:
        """Store server or local data and mark the entry fresh."""
        self.data = data
        self.has_data = True
        self.fetched_at = now
        self.error = None
        self.invalidated = False
