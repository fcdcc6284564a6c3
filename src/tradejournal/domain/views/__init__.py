"""View models for service outputs."""

from tradejournal.domain.views.stats import TradeStats

__all__ = [
    "TradeStats",
]
