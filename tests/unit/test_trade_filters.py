"""
Unit tests for trade filtering and sorting.

Tests cover:
- Search over ticker and notes
- Status filter
- Sort fields and directions
"""

from datetime import date

import pytest

from tradejournal.domain.models import SortOrder, TradeSortField, TradeStatus
from tradejournal.services import filter_and_sort_trades

from tests.conftest import make_trade


@pytest.fixture
def trades():
    return [
        make_trade(trade_id="a", ticker="AAPL", entry_date=date(2024, 6, 10), notes="Earnings breakout"),
        make_trade(
            trade_id="t",
            ticker="TSLA",
            entry_price="250",
            exit_price="240",
            quantity="10",
            entry_date=date(2024, 6, 12),
        ),
        make_trade(trade_id="n", ticker="NVDA", exit_price=None, entry_date=date(2024, 6, 11)),
        make_trade(
            trade_id="m",
            ticker="MSFT",
            entry_price="400",
            exit_price="405",
            quantity="10",
            entry_date=date(2024, 6, 9),
        ),
    ]


class TestFilterAndSort:
    """Tests for filter_and_sort_trades."""

    def test_default_is_newest_entry_first(self, trades):
        """
        GIVEN trades entered on different days
        WHEN no filter or sort is given
        THEN they come back newest entry date first
        """
        result = filter_and_sort_trades(trades)

        assert [t.id for t in result] == ["t", "n", "a", "m"]

    def test_search_matches_ticker_case_insensitively(self, trades):
        result = filter_and_sort_trades(trades, search="tsl")

        assert [t.id for t in result] == ["t"]

    def test_search_matches_notes(self, trades):
        """
        GIVEN a trade whose notes mention "earnings"
        WHEN searching for "EARNINGS"
        THEN that trade is found
        """
        result = filter_and_sort_trades(trades, search="EARNINGS")

        assert [t.id for t in result] == ["a"]

    def test_blank_search_matches_everything(self, trades):
        assert len(filter_and_sort_trades(trades, search="   ")) == 4

    @pytest.mark.parametrize(
        "status, expected",
        [
            (TradeStatus.OPEN, {"n"}),
            (TradeStatus.CLOSED, {"a", "t", "m"}),
            (TradeStatus.ALL, {"a", "t", "n", "m"}),
        ],
    )
    def test_status_filter(self, trades, status, expected):
        result = filter_and_sort_trades(trades, status=status)

        assert {t.id for t in result} == expected

    def test_profit_sort_treats_open_trades_as_zero(self, trades):
        """
        GIVEN winners, a loser and an open trade
        WHEN sorted by profit ascending
        THEN the open trade sits between the loser and the winners
        """
        result = filter_and_sort_trades(
            trades, sort_by=TradeSortField.PROFIT, order=SortOrder.ASC
        )

        # TSLA -100, NVDA open, MSFT +50, AAPL +380
        assert [t.id for t in result] == ["t", "n", "m", "a"]

    def test_ticker_sort_accepts_plain_strings(self, trades):
        result = filter_and_sort_trades(trades, sort_by="ticker", order="asc")

        assert [t.ticker for t in result] == ["AAPL", "MSFT", "NVDA", "TSLA"]

    def test_input_is_not_modified(self, trades):
        original = list(trades)

        filter_and_sort_trades(trades, sort_by=TradeSortField.TICKER)

        assert trades == original
