"""Domain models package."""

from tradejournal.domain.models.enums import (
    MessageRole,
    TradeStatus,
    TradeSortField,
    SortOrder,
    LogLevel,
)
from tradejournal.domain.models.session import User, Session, AuthState
from tradejournal.domain.models.chat import (
    Chat,
    ChatThread,
    Message,
    DEFAULT_CHAT_TITLE,
    TEMP_ID_PREFIX,
    new_temp_id,
    is_temporary_id,
    title_from_message,
)
from tradejournal.domain.models.trade import (
    Trade,
    TradeCreate,
    TradeUpdate,
    UNSET,
    compute_profit_loss,
)
from tradejournal.domain.models.internal import (
    UserData,
    OverviewMetrics,
    InternalAnalytics,
    BillingMetrics,
    ChatSessionSummary,
    LatencyPoint,
    CostPoint,
    SystemMetrics,
    LogEntry,
    LogData,
    FeatureFlags,
)

__all__ = [
    "MessageRole",
    "TradeStatus",
    "TradeSortField",
    "SortOrder",
    "LogLevel",
    "User",
    "Session",
    "AuthState",
    "Chat",
    "ChatThread",
    "Message",
    "DEFAULT_CHAT_TITLE",
    "TEMP_ID_PREFIX",
    "new_temp_id",
    "is_temporary_id",
    "title_from_message",
    "Trade",
    "TradeCreate",
    "TradeUpdate",
    "UNSET",
    "compute_profit_loss",
    "UserData",
    "OverviewMetrics",
    "InternalAnalytics",
    "BillingMetrics",
    "ChatSessionSummary",
    "LatencyPoint",
    "CostPoint",
    "SystemMetrics",
    "LogEntry",
    "LogData",
    "FeatureFlags",
]
