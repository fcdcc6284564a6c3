"""Mutations: optimistic writes, reconciliation, rollback and settle hooks."""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from tradejournal.cache.query_client import QueryClient
from tradejournal.core.exceptions import MutationInProgressError

logger = logging.getLogger(__name__)

TVars = TypeVar("TVars")
TData = TypeVar("TData")
TContext = TypeVar("TContext")

MaybeAwaitable = Union[None, Awaitable[None]]


class MutationStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class MutationState(Generic[TData]):
    """Outcome of one mutate() call."""

    status: MutationStatus = MutationStatus.IDLE
    data: Optional[TData] = None
    error: Optional[Exception] = None
    variables: Any = None

    @property
    def is_pending(self) -> bool:
        return self.status is MutationStatus.PENDING

    @property
    def is_success(self) -> bool:
        return self.status is MutationStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is MutationStatus.ERROR


class Mutation(Generic[TVars, TData, TContext]):
    """
    One kind of write against the gateway.

    Lifecycle of mutate(variables):
      1. on_optimistic_update(variables) -> context, synchronously, before any await
      2. await mutation_fn(variables)
      3. on_success(data, variables, context) or on_error(error, variables, context)
      4. on_settled(data, error, variables, context), exactly once

    A failing request is captured in the returned MutationState, not raised;
    an exception raised by on_error or on_settled propagates.
    When scope is given, only one mutation per scope value runs at a time;
    a call made while the scope is busy is rejected without running any hook.
    """

    def __init__(
        self,
        client: QueryClient,
        mutation_fn: Callable[[TVars], Awaitable[TData]],
        *,
        on_optimistic_update: Optional[Callable[[TVars], TContext]] = None,
        on_success: Optional[Callable[[TData, TVars, TContext], MaybeAwaitable]] = None,
        on_error: Optional[Callable[[Exception, TVars, TContext], MaybeAwaitable]] = None,
        on_settled: Optional[
            Callable[[Optional[TData], Optional[Exception], TVars, TContext], MaybeAwaitable]
        ] = None,
        scope: Optional[Callable[[TVars], str]] = None,
        name: str = "mutation",
    ):
        self._client = client
        self._mutation_fn = mutation_fn
        self._on_optimistic_update = on_optimistic_update
        self._on_success = on_success
        self._on_error = on_error
        self._on_settled = on_settled
        self._scope = scope
        self._name = name
        self._state: MutationState[TData] = MutationState()

    @property
    def state(self) -> MutationState[TData]:
        """State of the most recent call."""
        return self._state

    def scope_for(self, variables: TVars) -> Optional[str]:
        return self._scope(variables) if self._scope is not None else None

    def is_pending_for(self, variables: TVars) -> bool:
        scope = self.scope_for(variables)
        return scope is not None and self._client.is_mutating(scope)

    async def mutate(self, variables: TVars) -> MutationState[TData]:
        scope = self.scope_for(variables)
        if scope is not None and self._client.is_mutating(scope):
            logger.info(f"{self._name} rejected: {scope} already in progress")
            return MutationState(
                status=MutationStatus.ERROR,
                error=MutationInProgressError(scope),
                variables=variables,
            )

        if scope is not None:
            self._client.begin_mutation(scope)
        self._state = MutationState(status=MutationStatus.PENDING, variables=variables)

        context: Optional[TContext] = None
        data: Optional[TData] = None
        error: Optional[Exception] = None
        try:
            if self._on_optimistic_update is not None:
                context = self._on_optimistic_update(variables)
            data = await self._mutation_fn(variables)
            if self._on_success is not None:
                await _resolve(self._on_success(data, variables, context))
        except Exception as e:
            error = e
            data = None
            logger.warning(f"{self._name} failed: {e}")
            if self._on_error is not None:
                await _resolve(self._on_error(e, variables, context))
        finally:
            if scope is not None:
                self._client.end_mutation(scope)
            if self._on_settled is not None:
                await _resolve(self._on_settled(data, error, variables, context))

        if error is not None:
            self._state = MutationState(
                status=MutationStatus.ERROR, error=error, variables=variables
            )
        else:
            self._state = MutationState(
                status=MutationStatus.SUCCESS, data=data, variables=variables
            )
        return self._state


async def _resolve(result: MaybeAwaitable) -> None:
    if inspect.isawaitable(result):
        await result
