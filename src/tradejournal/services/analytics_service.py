"""Trade statistics and the server-side analytics query."""

from decimal import Decimal
from typing import Iterable, Optional

from tradejournal.api.resources import TradeAPI
from tradejournal.cache import QueryClient, QueryObserver, keys
from tradejournal.domain.models import Trade
from tradejournal.domain.views import TradeStats

CENT = Decimal("0.01")


def compute_trade_stats(trades: Iterable[Trade]) -> TradeStats:
    """
    Derive statistics from a trade list.

    P&L figures count closed trades only. Win rate is a percentage of
    closed trades; with no closed trades it and the average are zero.
    """
    trades = list(trades)
    closed = [t for t in trades if t.is_closed]

    total_pnl = sum((t.profit_loss for t in closed), Decimal("0"))
    winning = sum(1 for t in closed if t.profit_loss > 0)

    if closed:
        win_rate = (Decimal(winning) / Decimal(len(closed)) * 100).quantize(CENT)
        average = (total_pnl / Decimal(len(closed))).quantize(CENT)
    else:
        win_rate = Decimal("0")
        average = Decimal("0")

    return TradeStats(
        total_trades=len(trades),
        open_trades=len(trades) - len(closed),
        closed_trades=len(closed),
        winning_trades=winning,
        total_profit_loss=total_pnl.quantize(CENT),
        win_rate=win_rate,
        average_trade=average,
    )


class AnalyticsService:
    """
    Read-side analytics.

    Trade statistics are computed from the cached trade list on every read,
    never stored; the aggregate analytics object comes from the server.
    """

    def __init__(self, client: QueryClient, trade_api: TradeAPI):
        self._client = client
        self._api = trade_api

    def observe_analytics(self, enabled: bool = True) -> QueryObserver[dict]:
        return self._client.observe(keys.ANALYTICS, self._api.get_analytics, enabled=enabled)

    def trade_stats(self) -> TradeStats:
        """Statistics over the trades currently cached (empty if none)."""
        trades: Optional[list[Trade]] = self._client.get_query_data(keys.TRADES)
        return compute_trade_stats(trades or [])
