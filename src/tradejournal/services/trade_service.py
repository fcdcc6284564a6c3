"""Trade list queries and optimistic trade mutations."""

import logging
from dataclasses import dataclass
from typing import Optional

from tradejournal.api.resources import TradeAPI
from tradejournal.api.schemas import TradeUpdateRequest
from tradejournal.cache import Mutation, MutationState, QueryClient, QueryObserver, keys
from tradejournal.core.exceptions import AppError, NotFoundError, ValidationError
from tradejournal.domain.models import (
    SortOrder,
    Trade,
    TradeCreate,
    TradeSortField,
    TradeStatus,
    TradeUpdate,
    new_temp_id,
)
from tradejournal.services.notifications import Notifier
from tradejournal.services.trade_filters import filter_and_sort_trades

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeUpdateIntent:
    trade_id: str
    patch: TradeUpdate
    base: Optional[Trade] = None  # cached trade the patch was made against


@dataclass(frozen=True)
class RemovedTrade:
    """Rollback context for an optimistic delete."""

    trade: Optional[Trade]
    index: int


def _error_text(error: Exception) -> str:
    return error.message if isinstance(error, AppError) else str(error)


class TradeService:
    """
    Trade journal operations against the query cache.

    Every mutation edits the cached ("trades",) list optimistically and
    reconciles by trade id, never by position, so concurrent refetches and
    other mutations cannot be clobbered.
    """

    def __init__(self, client: QueryClient, api: TradeAPI, notifier: Notifier):
        self._client = client
        self._api = api
        self._notifier = notifier

        self._create = Mutation(
            client,
            self._api.create_trade,
            on_optimistic_update=self._optimistic_create,
            on_success=self._create_succeeded,
            on_error=self._create_failed,
            name="create-trade",
        )
        self._update = Mutation(
            client,
            self._send_update,
            on_optimistic_update=self._optimistic_update,
            on_success=self._update_succeeded,
            on_error=self._update_failed,
            scope=lambda intent: f"trade:{intent.trade_id}",
            name="update-trade",
        )
        self._delete = Mutation(
            client,
            self._send_delete,
            on_optimistic_update=self._optimistic_delete,
            on_success=self._delete_succeeded,
            on_error=self._delete_failed,
            scope=lambda trade_id: f"trade:{trade_id}",
            name="delete-trade",
        )

    # Queries

    def observe_trades(self, enabled: bool = True) -> QueryObserver[list[Trade]]:
        return self._client.observe(keys.TRADES, self._api.list_trades, enabled=enabled)

    async def list_trades(self) -> list[Trade]:
        return await self._client.ensure_query_data(keys.TRADES, self._api.list_trades)

    def cached_trades(self) -> list[Trade]:
        return list(self._client.get_query_data(keys.TRADES) or [])

    def filtered_trades(
        self,
        search: Optional[str] = None,
        status: TradeStatus = TradeStatus.ALL,
        sort_by: TradeSortField = TradeSortField.DATE,
        order: SortOrder = SortOrder.DESC,
    ) -> list[Trade]:
        """Cached trades after filtering and sorting."""
        return filter_and_sort_trades(self.cached_trades(), search, status, sort_by, order)

    # Mutations

    async def create_trade(self, data: TradeCreate) -> MutationState[Trade]:
        return await self._create.mutate(data)

    async def update_trade(self, trade_id: str, patch: TradeUpdate) -> MutationState[Trade]:
        intent = TradeUpdateIntent(trade_id=trade_id, patch=patch, base=self._find(trade_id))
        return await self._update.mutate(intent)

    async def delete_trade(self, trade_id: str) -> MutationState[None]:
        """Delete a trade. A trade the server no longer has counts as deleted."""
        return await self._delete.mutate(trade_id)

    def is_saving(self, trade_id: str) -> bool:
        return self._client.is_mutating(f"trade:{trade_id}")

    # Create

    def _optimistic_create(self, data: TradeCreate) -> str:
        self._validate_trade_create(data)
        self._client.cancel_queries(keys.TRADES)
        temp = Trade(
            id=new_temp_id(),
            ticker=data.ticker,
            entry_price=data.entry_price,
            exit_price=data.exit_price,
            quantity=data.quantity,
            entry_date=data.entry_date,
            exit_date=data.exit_date,
            notes=data.notes,
        )
        self._client.update_query_data(keys.TRADES, lambda trades: [temp, *(trades or [])])
        return temp.id

    def _create_succeeded(self, trade: Trade, data: TradeCreate, temp_id: str) -> None:
        def reconcile(trades: Optional[list[Trade]]) -> list[Trade]:
            trades = [t for t in (trades or []) if t.id != trade.id]
            for i, t in enumerate(trades):
                if t.id == temp_id:
                    trades[i] = trade
                    return trades
            return [trade, *trades]

        self._client.update_query_data(keys.TRADES, reconcile)
        self._invalidate()
        self._notifier.success("Trade added successfully")

    def _create_failed(self, error: Exception, data: TradeCreate, temp_id: Optional[str]) -> None:
        if temp_id is not None:
            self._remove(temp_id)
            logger.info(f"Rolled back optimistic trade {temp_id}")
        self._notifier.error("Failed to save trade", _error_text(error))

    # Update

    async def _send_update(self, intent: TradeUpdateIntent) -> Trade:
        if intent.base is not None:
            body = TradeUpdateRequest.from_patch(intent.base, intent.patch)
        else:
            body = TradeUpdateRequest(**intent.patch.changes())
        return await self._api.update_trade(intent.trade_id, body)

    def _optimistic_update(self, intent: TradeUpdateIntent) -> Optional[Trade]:
        self._validate_trade_update(intent.patch, intent.base or self._find(intent.trade_id))
        self._client.cancel_queries(keys.TRADES)
        previous = self._find(intent.trade_id)
        if previous is None:
            return None
        self._replace(intent.patch.apply_to(previous))
        return previous

    def _update_succeeded(self, trade: Trade, intent: TradeUpdateIntent, previous: Optional[Trade]) -> None:
        self._replace(trade)
        self._invalidate()
        self._notifier.success("Trade updated successfully")

    def _update_failed(self, error: Exception, intent: TradeUpdateIntent, previous: Optional[Trade]) -> None:
        if previous is not None:
            self._replace(previous)
            logger.info(f"Rolled back optimistic edit of trade {intent.trade_id}")
        self._notifier.error("Failed to save trade", _error_text(error))

    # Delete

    async def _send_delete(self, trade_id: str) -> None:
        try:
            await self._api.delete_trade(trade_id)
        except NotFoundError:
            logger.info(f"Trade {trade_id} already deleted")

    def _optimistic_delete(self, trade_id: str) -> RemovedTrade:
        self._client.cancel_queries(keys.TRADES)
        trades = self.cached_trades()
        for i, t in enumerate(trades):
            if t.id == trade_id:
                self._remove(trade_id)
                return RemovedTrade(trade=t, index=i)
        return RemovedTrade(trade=None, index=0)

    def _delete_succeeded(self, _: None, trade_id: str, removed: RemovedTrade) -> None:
        self._invalidate()
        self._notifier.success("Trade deleted successfully")

    def _delete_failed(self, error: Exception, trade_id: str, removed: Optional[RemovedTrade]) -> None:
        if removed is not None and removed.trade is not None:
            restored = removed.trade

            def reinsert(trades: Optional[list[Trade]]) -> Optional[list[Trade]]:
                trades = list(trades or [])
                if any(t.id == restored.id for t in trades):
                    return None
                trades.insert(min(removed.index, len(trades)), restored)
                return trades

            self._client.update_query_data(keys.TRADES, reinsert)
            logger.info(f"Rolled back optimistic delete of trade {trade_id}")
        self._notifier.error("Failed to delete trade", _error_text(error))

    # Cache helpers

    def _find(self, trade_id: str) -> Optional[Trade]:
        for t in self.cached_trades():
            if t.id == trade_id:
                return t
        return None

    def _replace(self, trade: Trade) -> None:
        def swap(trades: Optional[list[Trade]]) -> Optional[list[Trade]]:
            if not trades or not any(t.id == trade.id for t in trades):
                return None
            return [trade if t.id == trade.id else t for t in trades]

        self._client.update_query_data(keys.TRADES, swap)

    def _remove(self, trade_id: str) -> None:
        self._client.update_query_data(
            keys.TRADES,
            lambda trades: [t for t in trades if t.id != trade_id] if trades is not None else None,
        )

    def _invalidate(self) -> None:
        self._client.invalidate_queries(keys.TRADES)
        self._client.invalidate_queries(keys.ANALYTICS)

    # Validation

    def _validate_trade_create(self, data: TradeCreate) -> None:
        """Validate trade input before anything is written or sent."""
        if not data.ticker or not data.ticker.strip():
            raise ValidationError("Ticker is required")
        if data.quantity is None or data.quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")
        if data.entry_price is None or data.entry_price < 0:
            raise ValidationError("Entry price cannot be negative")
        if data.exit_price is not None and data.exit_price < 0:
            raise ValidationError("Exit price cannot be negative")
        if data.exit_date is not None and data.exit_date < data.entry_date:
            raise ValidationError("Exit date cannot be before entry date")

    def _validate_trade_update(self, patch: TradeUpdate, base: Optional[Trade] = None) -> None:
        """Validate the patched fields, and the dates against base when known."""
        changes = patch.changes()
        if "ticker" in changes and not (changes["ticker"] or "").strip():
            raise ValidationError("Ticker is required")
        if "quantity" in changes and (changes["quantity"] is None or changes["quantity"] <= 0):
            raise ValidationError("Quantity must be greater than 0")
        if "entry_price" in changes and (changes["entry_price"] is None or changes["entry_price"] < 0):
            raise ValidationError("Entry price cannot be negative")
        if changes.get("exit_price") is not None and changes["exit_price"] < 0:
            raise ValidationError("Exit price cannot be negative")
        if "entry_date" in changes and changes["entry_date"] is None:
            raise ValidationError("Entry date is required")

        entry_date = changes.get("entry_date", base.entry_date if base is not None else None)
        exit_date = changes.get("exit_date", base.exit_date if base is not None else None)
        if entry_date is not None and exit_date is not None and exit_date < entry_date:
            raise ValidationError("Exit date cannot be before entry date")
