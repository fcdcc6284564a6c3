"""Internal-console domain models (platform-wide aggregates)."""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from tradejournal.core.timezone import now_utc
from tradejournal.domain.models.enums import LogLevel

ACTIVE_USER_WINDOW = timedelta(days=7)


@dataclass(frozen=True)
class UserData:
    """A registered user with per-user activity counts."""

    id: str
    pseudonymous_id: str
    consent_given: bool
    created_at: datetime
    updated_at: datetime
    trades_count: int = 0
    chats_count: int = 0
    consent_date: Optional[datetime] = None

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """A user is active if updated within the last seven days."""
        return self.updated_at > (now or now_utc()) - ACTIVE_USER_WINDOW

    @property
    def short_id(self) -> str:
        return self.pseudonymous_id[:8]


@dataclass(frozen=True)
class OverviewMetrics:
    """Headline platform counts."""

    total_users: int = 0
    active_users_week: int = 0
    total_trades: int = 0
    total_chats: int = 0


@dataclass(frozen=True)
class InternalAnalytics:
    """Platform-wide trade analytics."""

    total_trades: int = 0
    avg_profit: Decimal = field(default_factory=lambda: Decimal("0"))
    win_rate: Decimal = field(default_factory=lambda: Decimal("0"))
    avg_hold_time: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass(frozen=True)
class BillingMetrics:
    """Revenue and plan metrics."""

    monthly_revenue: Decimal = field(default_factory=lambda: Decimal("0"))
    paid_users: int = 0
    avg_revenue_per_user: Decimal = field(default_factory=lambda: Decimal("0"))
    churn_rate: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass(frozen=True)
class ChatSessionSummary:
    """A chat session with its owner and message count."""

    id: str
    title: str
    created_at: datetime
    user_id: str
    user_email: str = "Unknown"
    message_count: int = 0


@dataclass(frozen=True)
class LatencyPoint:
    time: str
    ms: int


@dataclass(frozen=True)
class CostPoint:
    day: str
    cost: Decimal


@dataclass(frozen=True)
class SystemMetrics:
    """Service health metrics."""

    uptime: str = "0%"
    avg_latency: int = 0
    ai_requests: int = 0
    ai_costs: Decimal = field(default_factory=lambda: Decimal("0"))
    latency_data: tuple[LatencyPoint, ...] = ()
    ai_cost_data: tuple[CostPoint, ...] = ()


@dataclass(frozen=True)
class LogEntry:
    id: int
    timestamp: str
    level: LogLevel
    message: str
    source: str


@dataclass(frozen=True)
class LogData:
    """Recent log entries and 24h counters."""

    logs: tuple[LogEntry, ...] = ()
    errors_24h: int = 0
    warnings_24h: int = 0
    info_events: int = 0
    success_rate: str = "0%"


@dataclass(frozen=True)
class FeatureFlags:
    """Platform feature toggles."""

    ai_strategy_planner: bool = False
    emotion_tagging: bool = False
    journal_summarization: bool = False
    pattern_recognition: bool = False
    social_sharing: bool = False
    advanced_charts: bool = False
    mobile_app: bool = False
    email_digests: bool = False

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def toggled(self, name: str) -> "FeatureFlags":
        """Return a copy with one flag flipped."""
        if name not in self.names():
            raise KeyError(name)
        return replace(self, **{name: not getattr(self, name)})
