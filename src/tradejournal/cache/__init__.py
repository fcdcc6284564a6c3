"""Cache-coherent query/mutation layer."""

from tradejournal.cache import keys
from tradejournal.cache.entry import CacheEntry, CacheStatus
from tradejournal.cache.observer import QueryEvent, QueryObserver, QueryResult
from tradejournal.cache.query_client import QueryClient
from tradejournal.cache.mutation import Mutation, MutationState, MutationStatus

__all__ = [
    "keys",
    "CacheEntry",
    "CacheStatus",
    "QueryEvent",
    "QueryObserver",
    "QueryResult",
    "QueryClient",
    "Mutation",
    "MutationState",
    "MutationStatus",
]
