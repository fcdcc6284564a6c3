"""Service layer: session, role gate and the domain services over the query cache."""

from tradejournal.services.notifications import Notification, NotificationLevel, Notifier
from tradejournal.services.session_provider import SessionProvider
from tradejournal.services.role_gate import RoleGate, RoleStatus
from tradejournal.services.trade_filters import filter_and_sort_trades
from tradejournal.services.analytics_service import AnalyticsService, compute_trade_stats
from tradejournal.services.trade_service import TradeService
from tradejournal.services.chat_service import ChatService, THINKING_PLACEHOLDER
from tradejournal.services.internal_service import (
    FeatureFlagEditor,
    InternalConsoleService,
    PanelState,
    count_active_users,
    search_users,
)

__all__ = [
    "Notification",
    "NotificationLevel",
    "Notifier",
    "SessionProvider",
    "RoleGate",
    "RoleStatus",
    "filter_and_sort_trades",
    "AnalyticsService",
    "compute_trade_stats",
    "TradeService",
    "ChatService",
    "THINKING_PLACEHOLDER",
    "FeatureFlagEditor",
    "InternalConsoleService",
    "PanelState",
    "count_active_users",
    "search_users",
]
