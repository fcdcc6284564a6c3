"""Pydantic schemas for trade endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field, PlainSerializer, field_validator

from tradejournal.domain.models import Trade, TradeCreate, TradeUpdate, compute_profit_loss

# The gateway expects JSON numbers, not the strings pydantic emits for Decimal
JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class TradeCreateRequest(BaseModel):
    """Request schema for creating a trade."""

    ticker: str = Field(..., min_length=1, max_length=20)
    entry_price: JsonDecimal = Field(..., ge=0)
    exit_price: Optional[JsonDecimal] = Field(default=None, ge=0)
    quantity: JsonDecimal = Field(..., gt=0)
    entry_date: date
    exit_date: Optional[date] = None
    profit_loss: Optional[JsonDecimal] = None
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("ticker")
    @classmethod
    def uppercase_ticker(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def from_domain(cls, data: TradeCreate) -> "TradeCreateRequest":
        return cls(
            ticker=data.ticker,
            entry_price=data.entry_price,
            exit_price=data.exit_price,
            quantity=data.quantity,
            entry_date=data.entry_date,
            exit_date=data.exit_date,
            profit_loss=data.profit_loss,
            notes=data.notes or None,
        )


class TradeUpdateRequest(BaseModel):
    """Request schema for updating a trade (partial update)."""

    ticker: Optional[str] = Field(default=None, min_length=1, max_length=20)
    entry_price: Optional[JsonDecimal] = Field(default=None, ge=0)
    exit_price: Optional[JsonDecimal] = Field(default=None, ge=0)
    quantity: Optional[JsonDecimal] = Field(default=None, gt=0)
    entry_date: Optional[date] = None
    exit_date: Optional[date] = None
    profit_loss: Optional[JsonDecimal] = None
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("ticker")
    @classmethod
    def uppercase_ticker(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else None

    @classmethod
    def from_patch(cls, current: Trade, patch: TradeUpdate) -> "TradeUpdateRequest":
        """
        Build the PATCH body for a change to an existing trade.

        profit_loss is sent whenever a price or the quantity changes so the
        stored value stays consistent with the new inputs.
        """
        changes = patch.changes()
        if {"entry_price", "exit_price", "quantity"} & changes.keys():
            updated = patch.apply_to(current)
            changes["profit_loss"] = compute_profit_loss(
                updated.entry_price, updated.exit_price, updated.quantity
            )
        return cls(**changes)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", exclude_unset=True)


class TradeResponse(BaseModel):
    """Response schema for a single trade."""

    id: str
    ticker: str
    entry_price: Decimal
    exit_price: Optional[Decimal] = None
    quantity: Decimal
    entry_date: date
    exit_date: Optional[date] = None
    profit_loss: Optional[Decimal] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_domain(self) -> Trade:
        return Trade(
            id=self.id,
            ticker=self.ticker,
            entry_price=self.entry_price,
            exit_price=self.exit_price,
            quantity=self.quantity,
            entry_date=self.entry_date,
            exit_date=self.exit_date,
            notes=self.notes,
            created_at=self.created_at,
        )
