"""Rule-based stand-in for the AI trade extractor."""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from tradejournal.domain.models import TradeCreate

_NUMBER = r"\$?(\d+(?:\.\d+)?)"

_TICKER = re.compile(r"\b(?:bought|buy|long|sold|sell|short)\s+(?:\d+\s+(?:shares\s+of\s+)?)?([A-Za-z]{1,5})\b", re.I)
_ENTRY = re.compile(r"\b(?:bought|buy|long|entered)\b[^,.;]*?\bat\s+" + _NUMBER, re.I)
_EXIT = re.compile(r"\b(?:sold|sell|exited|closed)\b[^,.;]*?\bat\s+" + _NUMBER, re.I)
_QTY = re.compile(r"\b(?:qty|quantity|shares)\s*:?\s*(\d+(?:\.\d+)?)|\b(\d+(?:\.\d+)?)\s+shares\b", re.I)


def _decimal(value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        return None


def extract_trade(message: str, today: Optional[date] = None) -> Optional[TradeCreate]:
    """
    Pull a trade out of a message like
    "Bought AAPL at 178.50, sold at 182.30, qty 100".

    Returns None unless a ticker, an entry price and a quantity are all found.
    """
    ticker = _TICKER.search(message)
    entry = _ENTRY.search(message)
    qty = _QTY.search(message)
    if not (ticker and entry and qty):
        return None

    exit_match = _EXIT.search(message)
    entry_price = _decimal(entry.group(1))
    quantity = _decimal(qty.group(1) or qty.group(2))
    exit_price = _decimal(exit_match.group(1)) if exit_match else None
    if entry_price is None or quantity is None:
        return None

    today = today or date.today()
    return TradeCreate(
        ticker=ticker.group(1).upper(),
        entry_price=entry_price,
        quantity=quantity,
        entry_date=today,
        exit_price=exit_price,
        exit_date=today if exit_price is not None else None,
        notes=message,
    )
