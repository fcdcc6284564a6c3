"""API gateway client package."""

from tradejournal.api.client import ApiClient, TokenProvider, extract_error_message
from tradejournal.api.resources import ChatAPI, TradeAPI, InternalAPI

__all__ = [
    "ApiClient",
    "TokenProvider",
    "extract_error_message",
    "ChatAPI",
    "TradeAPI",
    "InternalAPI",
]
