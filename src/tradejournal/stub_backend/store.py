"""In-memory state of the development backend."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from tradejournal.core.timezone import now_utc
from tradejournal.domain.models import DEFAULT_CHAT_TITLE, FeatureFlags, Trade, title_from_message


@dataclass
class StubUser:
    id: str
    email: Optional[str]
    pseudonymous_id: str
    consent_given: bool = True
    consent_date: Optional[datetime] = None
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)


@dataclass
class StubChat:
    id: str
    user_id: str
    title: str = DEFAULT_CHAT_TITLE
    created_at: datetime = field(default_factory=now_utc)
    messages: list[dict] = field(default_factory=list)


@dataclass
class StubTrade:
    user_id: str
    trade: Trade


DEFAULT_FLAGS = FeatureFlags(
    ai_strategy_planner=True,
    emotion_tagging=True,
    journal_summarization=True,
    pattern_recognition=False,
    social_sharing=False,
    advanced_charts=True,
    mobile_app=True,
    email_digests=True,
)

BILLING_METRICS = {
    "monthlyRevenue": 42580,
    "paidUsers": 32,
    "avgRevenuePerUser": 1330,
    "churnRate": 4.2,
}

SYSTEM_METRICS = {
    "uptime": "99.98%",
    "avgLatency": 187,
    "aiRequests": 2847,
    "aiCosts": 123.80,
    "latencyData": [
        {"time": "00:00", "ms": 145},
        {"time": "04:00", "ms": 132},
        {"time": "08:00", "ms": 189},
        {"time": "12:00", "ms": 234},
        {"time": "16:00", "ms": 267},
        {"time": "20:00", "ms": 198},
    ],
    "aiCostData": [
        {"day": "Mon", "cost": 12.5},
        {"day": "Tue", "cost": 18.3},
        {"day": "Wed", "cost": 15.7},
        {"day": "Thu", "cost": 21.4},
        {"day": "Fri", "cost": 24.8},
        {"day": "Sat", "cost": 16.2},
        {"day": "Sun", "cost": 14.9},
    ],
}

LOG_DATA = {
    "logs": [
        {"id": 1, "timestamp": "2024-01-15 14:32:18", "level": "error",
         "message": "Failed to process AI request for user ID: 8f3a2...", "source": "AI Service"},
        {"id": 2, "timestamp": "2024-01-15 14:28:45", "level": "info",
         "message": "New user signup: user@example.com", "source": "Auth Service"},
        {"id": 3, "timestamp": "2024-01-15 14:15:03", "level": "warning",
         "message": "High latency detected in database queries (avg 450ms)", "source": "Database"},
        {"id": 4, "timestamp": "2024-01-15 13:52:21", "level": "success",
         "message": "Backup completed successfully", "source": "System"},
        {"id": 5, "timestamp": "2024-01-15 13:45:12", "level": "error",
         "message": "Payment processing failed for subscription renewal", "source": "Billing"},
        {"id": 6, "timestamp": "2024-01-15 13:30:08", "level": "info",
         "message": "Deployment completed: v2.3.1", "source": "System"},
        {"id": 7, "timestamp": "2024-01-15 12:18:45", "level": "warning",
         "message": "Rate limit approaching for user ID: 2b9c1...", "source": "API Gateway"},
        {"id": 8, "timestamp": "2024-01-15 11:42:33", "level": "success",
         "message": "Email digest sent to 87 users", "source": "Email Service"},
    ],
    "errors24h": 12,
    "warnings24h": 34,
    "infoEvents": 487,
    "successRate": "99.2%",
}

ACTIVE_WINDOW = timedelta(days=7)


class StubStore:
    """
    Users, tokens, chats, trades and feature flags for the stub backend.

    fail_next() makes the next call of a named operation fail, so clients
    can exercise their error paths against a real HTTP surface.
    """

    def __init__(self):
        self.users: dict[str, StubUser] = {}
        self.tokens: dict[str, str] = {}
        self.founders: set[str] = set()
        self.chats: dict[str, StubChat] = {}
        self.trades: dict[str, StubTrade] = {}
        self.flags: FeatureFlags = DEFAULT_FLAGS
        self.request_log: list[str] = []
        self._failures: dict[str, tuple[int, str]] = {}

    # Accounts

    def add_user(
        self,
        user_id: str,
        token: str,
        email: Optional[str] = None,
        founder: bool = False,
    ) -> StubUser:
        user = StubUser(
            id=user_id,
            email=email,
            pseudonymous_id=f"anon-{uuid.uuid5(uuid.NAMESPACE_URL, user_id).hex[:12]}",
            consent_date=now_utc(),
        )
        self.users[user_id] = user
        self.tokens[token] = user_id
        if founder:
            self.founders.add(user_id)
        return user

    def user_for_token(self, token: str) -> Optional[str]:
        return self.tokens.get(token)

    def touch(self, user_id: str) -> None:
        user = self.users.get(user_id)
        if user is not None:
            user.updated_at = now_utc()

    # Failure injection

    def fail_next(self, operation: str, status_code: int = 500, detail: str = "Internal error") -> None:
        self._failures[operation] = (status_code, detail)

    def take_failure(self, operation: str) -> Optional[tuple[int, str]]:
        return self._failures.pop(operation, None)

    # Chats

    def create_chat(self, user_id: str, title: str) -> StubChat:
        chat = StubChat(id=str(uuid.uuid4()), user_id=user_id, title=title)
        self.chats[chat.id] = chat
        self.touch(user_id)
        return chat

    def chats_for(self, user_id: str) -> list[StubChat]:
        chats = [c for c in self.chats.values() if c.user_id == user_id]
        return sorted(chats, key=lambda c: c.created_at, reverse=True)

    def get_chat(self, user_id: str, chat_id: str) -> Optional[StubChat]:
        chat = self.chats.get(chat_id)
        if chat is None or chat.user_id != user_id:
            return None
        return chat

    def append_message(self, chat: StubChat, role: str, content: str) -> dict:
        if role == "user" and not chat.messages and chat.title == DEFAULT_CHAT_TITLE:
            chat.title = title_from_message(content)
        message = {"id": str(uuid.uuid4()), "role": role, "content": content}
        chat.messages.append(message)
        return message

    # Trades

    def add_trade(self, user_id: str, trade: Trade) -> Trade:
        self.trades[trade.id] = StubTrade(user_id=user_id, trade=trade)
        self.touch(user_id)
        return trade

    def trades_for(self, user_id: str) -> list[Trade]:
        trades = [t.trade for t in self.trades.values() if t.user_id == user_id]
        return sorted(trades, key=lambda t: t.entry_date, reverse=True)

    def get_trade(self, user_id: str, trade_id: str) -> Optional[Trade]:
        record = self.trades.get(trade_id)
        if record is None or record.user_id != user_id:
            return None
        return record.trade

    def all_trades(self) -> list[Trade]:
        return [t.trade for t in self.trades.values()]

    # Internal aggregates

    def overview(self) -> dict:
        now = now_utc()
        return {
            "totalUsers": len(self.users),
            "activeUsersWeek": sum(
                1 for u in self.users.values() if now - u.updated_at <= ACTIVE_WINDOW
            ),
            "totalTrades": len(self.trades),
            "totalChats": len(self.chats),
        }

    def internal_analytics(self) -> dict:
        closed = [t for t in self.all_trades() if t.is_closed]
        if not closed:
            return {"totalTrades": len(self.trades), "avgProfit": 0, "winRate": 0, "avgHoldTime": 0}

        total = sum((t.profit_loss for t in closed), Decimal("0"))
        winners = sum(1 for t in closed if t.profit_loss > 0)
        held = [(t.exit_date - t.entry_date).days for t in closed if t.exit_date]
        return {
            "totalTrades": len(self.trades),
            "avgProfit": float(total / len(closed)),
            "winRate": round(winners / len(closed) * 100, 1),
            "avgHoldTime": round(sum(held) / len(held), 1) if held else 0,
        }

    def sessions(self) -> list[dict]:
        rows = sorted(self.chats.values(), key=lambda c: c.created_at, reverse=True)
        return [
            {
                "id": c.id,
                "title": c.title,
                "created_at": c.created_at.isoformat(),
                "user_id": c.user_id,
                "user_email": self.users[c.user_id].email if c.user_id in self.users else None,
                "message_count": len(c.messages),
            }
            for c in rows
        ]

    def user_rows(self) -> list[dict]:
        return [
            {
                "id": u.id,
                "pseudonymous_id": u.pseudonymous_id,
                "consent_given": u.consent_given,
                "consent_date": u.consent_date.isoformat() if u.consent_date else None,
                "created_at": u.created_at.isoformat(),
                "updated_at": u.updated_at.isoformat(),
                "trades_count": sum(1 for t in self.trades.values() if t.user_id == u.id),
                "chats_count": sum(1 for c in self.chats.values() if c.user_id == u.id),
            }
            for u in self.users.values()
        ]
