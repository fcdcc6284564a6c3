"""
Pytest configuration and fixtures for trade journal client tests.

This module provides:
- A fake monotonic clock for deterministic staleness
- Controllable async fetchers
- In-memory fakes of the chat, trade and internal gateway APIs
- Auth, role and navigation providers
- Query client, session, role gate and service fixtures
- A stub-backend-backed AppContext for integration tests
"""

import asyncio
import uuid
from collections import Counter
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session

from tradejournal.api.schemas import AssistantReply, SendMessageResponse
from tradejournal.app_context import AppContext
from tradejournal.cache import QueryClient
from tradejournal.config.settings import Settings, reset_settings
from tradejournal.core.exceptions import NotFoundError
from tradejournal.core.timezone import UTC
from tradejournal.domain.models import (
    BillingMetrics,
    Chat,
    ChatThread,
    FeatureFlags,
    Message,
    MessageRole,
    OverviewMetrics,
    Trade,
    TradeCreate,
    UserData,
)
from tradejournal.providers import (
    InMemoryAuthProvider,
    InMemoryRoleProvider,
    RecordingNavigator,
)
from tradejournal.repositories.sqlalchemy.database import Base
# Import ORM models to register them with Base before creating tables
from tradejournal.repositories.sqlalchemy import orm_models  # noqa: F401
from tradejournal.repositories.sqlalchemy import SqlAlchemyTranscriptRepository
from tradejournal.services import (
    ChatService,
    InternalConsoleService,
    Notifier,
    RoleGate,
    SessionProvider,
    TradeService,
)
from tradejournal.stub_backend import StubStore, create_app


# =============================================================================
# TIME HELPERS
# =============================================================================


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def utc_datetime(year: int, month: int, day: int, hour: int = 10, minute: int = 0) -> datetime:
    """Create an aware UTC datetime."""
    return UTC.localize(datetime(year, month, day, hour, minute))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


async def settle(client: Optional[QueryClient] = None, rounds: int = 25) -> None:
    """Let scheduled callbacks and background fetches run to completion."""
    for _ in range(rounds):
        await asyncio.sleep(0)
    if client is not None:
        await client.wait_idle()
        for _ in range(rounds):
            await asyncio.sleep(0)


# =============================================================================
# FETCHER HELPERS
# =============================================================================


class ControlledFetcher:
    """
    Async fetcher for query tests.

    Returns (or raises) the queued results in order, repeating the last one.
    With block=True every call waits until release() is called.
    """

    def __init__(self, *results: Any, block: bool = False):
        self.calls = 0
        self._results = list(results) or [None]
        self._gate: Optional[asyncio.Event] = asyncio.Event() if block else None

    async def __call__(self) -> Any:
        self.calls += 1
        result = self._results[min(self.calls - 1, len(self._results) - 1)]
        if self._gate is not None:
            await self._gate.wait()
        if isinstance(result, Exception):
            raise result
        return result

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()


# =============================================================================
# DOMAIN FACTORIES
# =============================================================================


def make_trade(
    trade_id: Optional[str] = None,
    ticker: str = "AAPL",
    entry_price: str = "178.50",
    exit_price: Optional[str] = "182.30",
    quantity: str = "100",
    entry_date: date = date(2024, 6, 10),
    notes: Optional[str] = None,
) -> Trade:
    """Create a Trade with sensible defaults."""
    return Trade(
        id=trade_id or str(uuid.uuid4()),
        ticker=ticker,
        entry_price=Decimal(entry_price),
        exit_price=Decimal(exit_price) if exit_price is not None else None,
        quantity=Decimal(quantity),
        entry_date=entry_date,
        exit_date=entry_date if exit_price is not None else None,
        notes=notes,
    )


def make_thread(chat_id: str, title: str = "New chat", *contents: str) -> ChatThread:
    """Create a confirmed thread alternating user and assistant messages."""
    roles = [MessageRole.USER, MessageRole.ASSISTANT]
    messages = tuple(
        Message(id=f"{chat_id}-m{i}", role=roles[i % 2], content=content)
        for i, content in enumerate(contents)
    )
    return ChatThread(
        chat=Chat(id=chat_id, title=title, created_at=utc_datetime(2024, 6, 1)),
        messages=messages,
    )


# =============================================================================
# FAKE GATEWAY APIS
# =============================================================================


class FakeChatAPI:
    """In-memory ChatAPI. get_chat can be blocked; send_message can be blocked or made to fail."""

    def __init__(self):
        self.threads: dict[str, ChatThread] = {}
        self.calls: Counter = Counter()
        self.send_error: Optional[Exception] = None
        self.send_gate: Optional[asyncio.Event] = None
        self.get_gate: Optional[asyncio.Event] = None
        self.reply = "Noted."
        self.trade_extracted = False

    async def list_chats(self) -> list[Chat]:
        self.calls["list_chats"] += 1
        return [t.chat for t in self.threads.values()]

    async def create_chat(self, title: str = "New chat") -> Chat:
        self.calls["create_chat"] += 1
        chat = Chat(id=str(uuid.uuid4()), title=title, created_at=utc_datetime(2024, 6, 1))
        self.threads[chat.id] = ChatThread(chat=chat)
        return chat

    async def get_chat(self, chat_id: str) -> ChatThread:
        self.calls["get_chat"] += 1
        if self.get_gate is not None:
            await self.get_gate.wait()
        if chat_id not in self.threads:
            raise NotFoundError("Resource", f"/chats/{chat_id}", "Chat not found")
        return self.threads[chat_id]

    async def delete_chat(self, chat_id: str) -> None:
        self.calls["delete_chat"] += 1
        if chat_id not in self.threads:
            raise NotFoundError("Resource", f"/chats/{chat_id}", "Chat not found")
        del self.threads[chat_id]

    async def send_message(self, chat_id: str, message: str) -> SendMessageResponse:
        self.calls["send_message"] += 1
        if self.send_gate is not None:
            await self.send_gate.wait()
        if self.send_error is not None:
            raise self.send_error

        thread = self.threads[chat_id]
        title = thread.chat.title
        if not thread.messages and title == "New chat":
            title = message[:50]
        reply_id = str(uuid.uuid4())
        self.threads[chat_id] = ChatThread(
            chat=Chat(id=chat_id, title=title, created_at=thread.chat.created_at),
            messages=(
                *thread.messages,
                Message(id=str(uuid.uuid4()), role=MessageRole.USER, content=message),
                Message(id=reply_id, role=MessageRole.ASSISTANT, content=self.reply),
            ),
        )
        return SendMessageResponse(
            message=AssistantReply(id=reply_id, content=self.reply),
            trade_extracted=self.trade_extracted,
        )


class FakeTradeAPI:
    """In-memory TradeAPI."""

    def __init__(self, trades: Optional[list[Trade]] = None):
        self.trades: dict[str, Trade] = {t.id: t for t in trades or []}
        self.calls: Counter = Counter()
        self.error: Optional[Exception] = None
        self.update_bodies: list[dict] = []

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    async def list_trades(self) -> list[Trade]:
        self.calls["list_trades"] += 1
        return list(self.trades.values())

    async def create_trade(self, data: TradeCreate) -> Trade:
        self.calls["create_trade"] += 1
        self._check()
        trade = Trade(
            id=str(uuid.uuid4()),
            ticker=data.ticker,
            entry_price=data.entry_price,
            exit_price=data.exit_price,
            quantity=data.quantity,
            entry_date=data.entry_date,
            exit_date=data.exit_date,
            notes=data.notes,
        )
        self.trades[trade.id] = trade
        return trade

    async def update_trade(self, trade_id: str, body) -> Trade:
        self.calls["update_trade"] += 1
        self._check()
        payload = body.to_payload()
        self.update_bodies.append(payload)
        if trade_id not in self.trades:
            raise NotFoundError("Resource", f"/trades/{trade_id}", "Trade not found")
        changes = body.model_dump(exclude_unset=True)
        changes.pop("profit_loss", None)
        self.trades[trade_id] = self.trades[trade_id].with_changes(**changes)
        return self.trades[trade_id]

    async def delete_trade(self, trade_id: str) -> None:
        self.calls["delete_trade"] += 1
        self._check()
        if trade_id not in self.trades:
            raise NotFoundError("Resource", f"/trades/{trade_id}", "Trade not found")
        del self.trades[trade_id]

    async def get_analytics(self) -> dict:
        self.calls["get_analytics"] += 1
        return {"total_trades": len(self.trades)}


class FakeInternalAPI:
    """In-memory InternalAPI counting every call."""

    def __init__(self):
        self.calls: Counter = Counter()
        self.flags = FeatureFlags(ai_strategy_planner=True, advanced_charts=True)
        self.users: list[UserData] = []

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def get_users(self) -> list[UserData]:
        self.calls["users"] += 1
        return list(self.users)

    async def get_overview_metrics(self) -> OverviewMetrics:
        self.calls["overview"] += 1
        return OverviewMetrics(total_users=len(self.users), total_trades=3, total_chats=2)

    async def get_analytics(self):
        self.calls["analytics"] += 1
        raise NotImplementedError

    async def get_billing_metrics(self) -> BillingMetrics:
        self.calls["billing"] += 1
        return BillingMetrics(
            monthly_revenue=Decimal("42580"),
            paid_users=32,
            avg_revenue_per_user=Decimal("1330"),
            churn_rate=Decimal("4.2"),
        )

    async def get_sessions(self):
        self.calls["sessions"] += 1
        return []

    async def get_system_metrics(self):
        self.calls["system"] += 1
        raise NotImplementedError

    async def get_logs(self):
        self.calls["logs"] += 1
        raise NotImplementedError

    async def get_config(self) -> FeatureFlags:
        self.calls["config"] += 1
        return self.flags

    async def save_config(self, flags: FeatureFlags) -> FeatureFlags:
        self.calls["save_config"] += 1
        self.flags = flags
        return flags


# =============================================================================
# PROVIDER FIXTURES
# =============================================================================


class BlockingRoleProvider(InMemoryRoleProvider):
    """Role provider whose lookups wait until release() is called."""

    def __init__(self, roles: Optional[dict[str, set[str]]] = None):
        super().__init__(roles)
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def has_role(self, user_id: str, role: str) -> bool:
        await self._gate.wait()
        return await super().has_role(user_id, role)


@pytest.fixture
def auth_provider() -> InMemoryAuthProvider:
    return InMemoryAuthProvider()


@pytest.fixture
def role_provider() -> InMemoryRoleProvider:
    return InMemoryRoleProvider()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


# =============================================================================
# CACHE AND SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def query_client(clock: FakeClock) -> QueryClient:
    """Query client on the fake clock; retries are immediate."""
    return QueryClient(
        clock=clock,
        default_stale_seconds=60.0,
        retry=2,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def session_provider(query_client, auth_provider, navigator) -> SessionProvider:
    return SessionProvider(query_client, auth_provider, navigator, stale_seconds=60.0)


@pytest.fixture
def role_gate(query_client, session_provider, role_provider) -> RoleGate:
    return RoleGate(query_client, session_provider, role_provider)


@pytest.fixture
def chat_api() -> FakeChatAPI:
    return FakeChatAPI()


@pytest.fixture
def trade_api() -> FakeTradeAPI:
    return FakeTradeAPI()


@pytest.fixture
def internal_api() -> FakeInternalAPI:
    return FakeInternalAPI()


@pytest.fixture
def chat_service(query_client, chat_api, notifier) -> ChatService:
    return ChatService(query_client, chat_api, notifier)


@pytest.fixture
def trade_service(query_client, trade_api, notifier) -> TradeService:
    return TradeService(query_client, trade_api, notifier)


@pytest.fixture
def internal_service(query_client, internal_api, role_gate, notifier) -> InternalConsoleService:
    return InternalConsoleService(query_client, internal_api, role_gate, notifier)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def transcript_repo(test_session) -> SqlAlchemyTranscriptRepository:
    """Provide test TranscriptRepository."""
    return SqlAlchemyTranscriptRepository(test_session)


# =============================================================================
# STUB BACKEND FIXTURES
# =============================================================================


TRADER_TOKEN = "tok-trader"
FOUNDER_TOKEN = "tok-founder"


@pytest.fixture
def stub_store() -> StubStore:
    """Stub backend state with one trader and one founder."""
    store = StubStore()
    store.add_user("trader-1", TRADER_TOKEN, email="trader@example.com")
    store.add_user("founder-1", FOUNDER_TOKEN, email="founder@example.com", founder=True)
    return store


@pytest_asyncio.fixture
async def app_context(stub_store, tmp_path):
    """AppContext talking to the stub backend in-process."""
    reset_settings()
    settings = Settings(
        api_url="http://testserver/api",
        data_dir=tmp_path,
        retry_base_delay_seconds=0.0,
        retry_max_delay_seconds=0.0,
    )
    ctx = AppContext(
        settings=settings,
        roles=InMemoryRoleProvider({"founder-1": {"founder"}}),
        transport=httpx.ASGITransport(app=create_app(stub_store)),
    )
    ctx.start()
    yield ctx
    await ctx.aclose()
    reset_settings()


@pytest.fixture
def client(stub_store) -> TestClient:
    """FastAPI test client for the stub backend."""
    with TestClient(create_app(stub_store)) as test_client:
        yield test_client


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
