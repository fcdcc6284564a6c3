"""Domain endpoint groups built on ApiClient."""

from tradejournal.api.resources.chats import ChatAPI
from tradejournal.api.resources.trades import TradeAPI
from tradejournal.api.resources.internal import InternalAPI

__all__ = [
    "ChatAPI",
    "TradeAPI",
    "InternalAPI",
]
