"""Pydantic schemas for internal-console endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tradejournal.domain.models import (
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
    LogLevel,
)


class CamelModel(BaseModel):
    """Base for payloads the backend sends with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserDataResponse(BaseModel):
    """Response schema for a user row (snake_case, straight from the profile table)."""

    id: str
    pseudonymous_id: str
    consent_given: bool = False
    consent_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    trades_count: int = Field(default=0, ge=0)
    chats_count: int = Field(default=0, ge=0)

    def to_domain(self) -> UserData:
        return UserData(**self.model_dump())


class OverviewMetricsResponse(CamelModel):
    total_users: int = 0
    active_users_week: int = 0
    total_trades: int = 0
    total_chats: int = 0

    def to_domain(self) -> OverviewMetrics:
        return OverviewMetrics(**self.model_dump())


class InternalAnalyticsResponse(CamelModel):
    total_trades: int = 0
    avg_profit: Decimal = Decimal("0")
    win_rate: Decimal = Decimal("0")
    avg_hold_time: Decimal = Decimal("0")

    def to_domain(self) -> InternalAnalytics:
        return InternalAnalytics(**self.model_dump())


class BillingMetricsResponse(CamelModel):
    monthly_revenue: Decimal = Decimal("0")
    paid_users: int = 0
    avg_revenue_per_user: Decimal = Decimal("0")
    churn_rate: Decimal = Decimal("0")

    def to_domain(self) -> BillingMetrics:
        return BillingMetrics(**self.model_dump())


class ChatSessionResponse(BaseModel):
    """One row of the aggregated chat-session listing."""

    id: str
    title: str
    created_at: datetime
    user_id: str
    user_email: Optional[str] = None
    message_count: int = Field(default=0, ge=0)

    def to_domain(self) -> ChatSessionSummary:
        return ChatSessionSummary(
            id=self.id,
            title=self.title,
            created_at=self.created_at,
            user_id=self.user_id,
            user_email=self.user_email or "Unknown",
            message_count=self.message_count,
        )


class LatencyPointResponse(CamelModel):
    time: str
    ms: int


class CostPointResponse(CamelModel):
    day: str
    cost: Decimal


class SystemMetricsResponse(CamelModel):
    uptime: str = "0%"
    avg_latency: int = 0
    ai_requests: int = 0
    ai_costs: Decimal = Decimal("0")
    latency_data: list[LatencyPointResponse] = Field(default_factory=list)
    ai_cost_data: list[CostPointResponse] = Field(default_factory=list)

    def to_domain(self) -> SystemMetrics:
        return SystemMetrics(
            uptime=self.uptime,
            avg_latency=self.avg_latency,
            ai_requests=self.ai_requests,
            ai_costs=self.ai_costs,
            latency_data=tuple(LatencyPoint(p.time, p.ms) for p in self.latency_data),
            ai_cost_data=tuple(CostPoint(p.day, p.cost) for p in self.ai_cost_data),
        )


class LogEntryResponse(CamelModel):
    id: int
    timestamp: str
    level: LogLevel
    message: str
    source: str


class LogDataResponse(CamelModel):
    logs: list[LogEntryResponse] = Field(default_factory=list)
    errors_24h: int = Field(default=0, alias="errors24h")
    warnings_24h: int = Field(default=0, alias="warnings24h")
    info_events: int = 0
    success_rate: str = "0%"

    def to_domain(self) -> LogData:
        return LogData(
            logs=tuple(LogEntry(**entry.model_dump()) for entry in self.logs),
            errors_24h=self.errors_24h,
            warnings_24h=self.warnings_24h,
            info_events=self.info_events,
            success_rate=self.success_rate,
        )


class FeatureFlagsSchema(CamelModel):
    """Feature flags, used for both the GET response and the PUT body."""

    ai_strategy_planner: bool = False
    emotion_tagging: bool = False
    journal_summarization: bool = False
    pattern_recognition: bool = False
    social_sharing: bool = False
    advanced_charts: bool = False
    mobile_app: bool = False
    email_digests: bool = False

    @classmethod
    def from_domain(cls, flags: FeatureFlags) -> "FeatureFlagsSchema":
        return cls(**{name: getattr(flags, name) for name in FeatureFlags.names()})

    def to_domain(self) -> FeatureFlags:
        return FeatureFlags(**self.model_dump())

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)
