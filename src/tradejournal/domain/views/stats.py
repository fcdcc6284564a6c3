"""View models for derived trade statistics."""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class TradeStats:
    """Aggregates derived from the cached trade list on read."""

    total_trades: int = 0
    open_trades: int = 0
    closed_trades: int = 0
    winning_trades: int = 0
    total_profit_loss: Decimal = field(default_factory=lambda: Decimal("0"))
    win_rate: Decimal = field(default_factory=lambda: Decimal("0"))  # percent
    average_trade: Decimal = field(default_factory=lambda: Decimal("0"))
