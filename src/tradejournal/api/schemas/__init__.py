"""Pydantic schemas validating gateway requests and responses."""

from tradejournal.api.schemas.chat import (
    ChatCreateRequest,
    SendMessageRequest,
    ChatResponse,
    MessageResponse,
    ChatThreadResponse,
    AssistantReply,
    SendMessageResponse,
)
from tradejournal.api.schemas.trade import (
    TradeCreateRequest,
    TradeUpdateRequest,
    TradeResponse,
)
from tradejournal.api.schemas.analytics import AnalyticsResponse
from tradejournal.api.schemas.internal import (
    UserDataResponse,
    OverviewMetricsResponse,
    InternalAnalyticsResponse,
    BillingMetricsResponse,
    ChatSessionResponse,
    SystemMetricsResponse,
    LogDataResponse,
    FeatureFlagsSchema,
)

__all__ = [
    "ChatCreateRequest",
    "SendMessageRequest",
    "ChatResponse",
    "MessageResponse",
    "ChatThreadResponse",
    "AssistantReply",
    "SendMessageResponse",
    "TradeCreateRequest",
    "TradeUpdateRequest",
    "TradeResponse",
    "AnalyticsResponse",
    "UserDataResponse",
    "OverviewMetricsResponse",
    "InternalAnalyticsResponse",
    "BillingMetricsResponse",
    "ChatSessionResponse",
    "SystemMetricsResponse",
    "LogDataResponse",
    "FeatureFlagsSchema",
]
