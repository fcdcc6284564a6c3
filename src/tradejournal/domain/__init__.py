"""Domain layer - pure client models with no I/O."""

from tradejournal.domain.models import (
    AuthState,
    Chat,
    ChatThread,
    Message,
    MessageRole,
    Session,
    Trade,
    User,
)
from tradejournal.domain.views import TradeStats

__all__ = [
    "AuthState",
    "Chat",
    "ChatThread",
    "Message",
    "MessageRole",
    "Session",
    "Trade",
    "User",
    "TradeStats",
]
