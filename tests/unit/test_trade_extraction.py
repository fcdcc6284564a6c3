"""
Unit tests for the rule-based trade extractor used by the stub backend.
"""

from datetime import date
from decimal import Decimal

import pytest

from tradejournal.stub_backend.trade_extraction import extract_trade


TODAY = date(2024, 6, 10)


class TestExtractTrade:
    """Tests for extract_trade."""

    def test_closed_trade_sentence(self):
        """
        GIVEN "Bought AAPL at 178.50, sold at 182.30, qty 100"
        WHEN a trade is extracted
        THEN ticker, prices and quantity are found and P&L is 380.00
        """
        trade = extract_trade("Bought AAPL at 178.50, sold at 182.30, qty 100", today=TODAY)

        assert trade.ticker == "AAPL"
        assert trade.entry_price == Decimal("178.50")
        assert trade.exit_price == Decimal("182.30")
        assert trade.quantity == Decimal("100")
        assert trade.entry_date == TODAY
        assert trade.exit_date == TODAY
        assert trade.profit_loss == Decimal("380.00")

    def test_open_position(self):
        trade = extract_trade("bought 50 shares of tsla at $250", today=TODAY)

        assert trade.ticker == "TSLA"
        assert trade.quantity == Decimal("50")
        assert trade.exit_price is None
        assert trade.exit_date is None

    @pytest.mark.parametrize(
        "message",
        [
            "How am I doing this month?",
            "Bought AAPL yesterday",
            "Bought AAPL at 178.50",
        ],
    )
    def test_incomplete_messages_yield_nothing(self, message):
        assert extract_trade(message, today=TODAY) is None
