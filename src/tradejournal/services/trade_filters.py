"""Free-text filtering, status filtering and sorting of trade lists."""

from decimal import Decimal
from typing import Iterable, Optional

from tradejournal.domain.models import SortOrder, Trade, TradeSortField, TradeStatus

ZERO = Decimal("0")


def matches_search(trade: Trade, search: str) -> bool:
    """Case-insensitive substring match against ticker and notes."""
    needle = search.strip().lower()
    if not needle:
        return True
    return needle in trade.ticker.lower() or needle in (trade.notes or "").lower()


def matches_status(trade: Trade, status: TradeStatus) -> bool:
    if status is TradeStatus.OPEN:
        return trade.is_open
    if status is TradeStatus.CLOSED:
        return trade.is_closed
    return True


def _sort_key(field: TradeSortField):
    if field is TradeSortField.PROFIT:
        return lambda t: t.profit_loss if t.profit_loss is not None else ZERO
    if field is TradeSortField.TICKER:
        return lambda t: t.ticker
    return lambda t: t.entry_date


def filter_and_sort_trades(
    trades: Iterable[Trade],
    search: Optional[str] = None,
    status: TradeStatus = TradeStatus.ALL,
    sort_by: TradeSortField = TradeSortField.DATE,
    order: SortOrder = SortOrder.DESC,
) -> list[Trade]:
    """
    Filter then sort a trade collection.

    Open trades sort as zero P&L. The input is not modified.
    """
    status = TradeStatus(status)
    sort_by = TradeSortField(sort_by)
    order = SortOrder(order)

    filtered = [
        t for t in trades
        if matches_status(t, status) and matches_search(t, search or "")
    ]
    return sorted(filtered, key=_sort_key(sort_by), reverse=order is SortOrder.DESC)
