"""Trade domain model."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from tradejournal.domain.models.chat import is_temporary_id


def compute_profit_loss(
    entry_price: Decimal,
    exit_price: Optional[Decimal],
    quantity: Decimal,
) -> Optional[Decimal]:
    """
    Realized P&L of a trade.

    (exit_price - entry_price) * quantity for closed trades, None for open ones.
    """
    if exit_price is None:
        return None
    return (exit_price - entry_price) * quantity


@dataclass(frozen=True)
class Trade:
    """
    Trade log entry.

    profit_loss is always derived from the prices and quantity; a value sent
    by the server is recomputed so the two can never disagree.
    """

    id: str
    ticker: str
    entry_price: Decimal
    quantity: Decimal
    entry_date: date
    exit_price: Optional[Decimal] = None
    exit_date: Optional[date] = None
    profit_loss: Optional[Decimal] = field(default=None)
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "ticker", self.ticker.upper())
        object.__setattr__(
            self,
            "profit_loss",
            compute_profit_loss(self.entry_price, self.exit_price, self.quantity),
        )

    @property
    def is_closed(self) -> bool:
        """Return True once the position has an exit price."""
        return self.exit_price is not None

    @property
    def is_open(self) -> bool:
        return self.exit_price is None

    @property
    def is_temporary(self) -> bool:
        return is_temporary_id(self.id)

    def with_changes(self, **changes) -> "Trade":
        """Return a copy with changes applied and profit_loss recomputed."""
        return replace(self, **changes)


@dataclass
class TradeCreate:
    """Input data for logging a trade."""

    ticker: str
    entry_price: Decimal
    quantity: Decimal
    entry_date: date
    exit_price: Optional[Decimal] = None
    exit_date: Optional[date] = None
    notes: Optional[str] = None

    @property
    def profit_loss(self) -> Optional[Decimal]:
        return compute_profit_loss(self.entry_price, self.exit_price, self.quantity)


# Distinguishes "leave unchanged" from an explicit None (e.g. reopening a trade)
UNSET = object()


@dataclass
class TradeUpdate:
    """Partial update data for editing a trade. UNSET fields are left unchanged."""

    ticker: object = UNSET
    entry_price: object = UNSET
    exit_price: object = UNSET
    quantity: object = UNSET
    entry_date: object = UNSET
    exit_date: object = UNSET
    notes: object = UNSET

    def changes(self) -> dict:
        """Return only the fields that were set."""
        return {
            name: value
            for name, value in self.__dict__.items()
            if value is not UNSET
        }

    def apply_to(self, trade: Trade) -> Trade:
        """Apply this patch to a trade, recomputing profit_loss."""
        return trade.with_changes(**self.changes())
