"""
Integration tests running the client services against the stub backend.

Requests travel over httpx into the in-process FastAPI app, so the gateway
client, schemas, query cache, services and stub routers are exercised
together.

Tests cover:
- Logging a trade from a chat message
- Founder-only internal console
- Sign-out
- Trade CRUD and idempotent deletes
- Server failures surfacing as rollbacks
"""

from datetime import date
from decimal import Decimal

import pytest

from tradejournal.app_context import AppContext
from tradejournal.cache import keys
from tradejournal.core.exceptions import UnauthenticatedError
from tradejournal.domain.models import MessageRole, TradeCreate, TradeUpdate
from tradejournal.services import THINKING_PLACEHOLDER
from tradejournal.services.role_gate import DENIED, GRANTED
from tradejournal.services.session_provider import LOGIN_PATH
from tradejournal.stub_backend import StubStore

from tests.conftest import FOUNDER_TOKEN, TRADER_TOKEN, settle


TRADE_MESSAGE = "Bought AAPL at 178.50, sold at 182.30, qty 100"


async def sign_in(ctx: AppContext, user_id: str, token: str) -> None:
    ctx.auth.sign_in(user_id, email=f"{user_id}@example.com", token=token)
    await settle(ctx.query_client)
    await ctx.role_gate.wait_resolved()
    await settle(ctx.query_client)


def internal_requests(store: StubStore) -> list[str]:
    return [line for line in store.request_log if "/api/internal/" in line]


# =============================================================================
# CHAT TO TRADE TESTS
# =============================================================================


class TestChatToTrade:
    """A trade described in a chat message ends up in the journal."""

    @pytest.mark.asyncio
    async def test_trade_message_round_trip(self, app_context: AppContext, stub_store: StubStore):
        """
        GIVEN a signed-in trader with a new, empty chat open
        WHEN "Bought AAPL at 178.50, sold at 182.30, qty 100" is sent
        THEN the message and a thinking placeholder show at once
        AND the settled thread holds the message and the assistant's reply
        AND the trades list gains an AAPL trade with P&L 380.00
        AND a "Trade logged" notice is shown
        """
        ctx = app_context
        await sign_in(ctx, "trader-1", TRADER_TOKEN)
        chats = ctx.chats.observe_chats()
        trades = ctx.trades.observe_trades()
        await ctx.query_client.wait_idle()
        assert chats.result.data == []
        assert trades.result.data == []

        created = await ctx.chats.create_chat()
        chat_id = created.data.id
        thread = ctx.chats.observe_chat(chat_id)
        snapshots = []
        thread.subscribe(snapshots.append)

        state = await ctx.chats.send_message(chat_id, TRADE_MESSAGE)
        await settle(ctx.query_client)

        assert state.is_success
        optimistic = snapshots[0].data.messages
        assert [m.content for m in optimistic] == [TRADE_MESSAGE, THINKING_PLACEHOLDER]
        assert all(m.is_temporary for m in optimistic)

        messages = thread.result.data.messages
        assert [m.role for m in messages] == [MessageRole.USER, MessageRole.ASSISTANT]
        assert messages[0].content == TRADE_MESSAGE
        assert messages[1].content.startswith("Logged AAPL")
        assert not any(m.is_temporary for m in messages)

        [trade] = trades.result.data
        assert trade.ticker == "AAPL"
        assert trade.profit_loss.quantize(Decimal("0.01")) == Decimal("380.00")
        assert ctx.analytics.trade_stats().total_profit_loss == Decimal("380.00")

        assert chats.result.data[0].title == TRADE_MESSAGE
        assert "Trade logged" in [n.title for n in ctx.notifier.active]

    @pytest.mark.asyncio
    async def test_failed_send_rolls_back(self, app_context: AppContext, stub_store: StubStore):
        """
        GIVEN a chat with one answered message
        WHEN the next send fails on the server
        THEN the thread shows only the earlier exchange and the error is shown
        """
        ctx = app_context
        await sign_in(ctx, "trader-1", TRADER_TOKEN)
        created = await ctx.chats.create_chat()
        chat_id = created.data.id
        thread = ctx.chats.observe_chat(chat_id)
        await ctx.chats.send_message(chat_id, "Hello")
        await settle(ctx.query_client)
        before = thread.result.data
        stub_store.fail_next("send_message", 500, "Model overloaded")

        state = await ctx.chats.send_message(chat_id, "Are you there?")

        assert state.is_error
        assert thread.result.data == before
        assert ctx.notifier.active[-1].message == "Model overloaded"
        assert not ctx.chats.is_typing(chat_id)


# =============================================================================
# INTERNAL CONSOLE TESTS
# =============================================================================


class TestInternalConsole:
    """Founder-only dashboards against the real HTTP surface."""

    @pytest.mark.asyncio
    async def test_trader_never_reaches_internal_endpoints(
        self,
        app_context: AppContext,
        stub_store: StubStore,
    ):
        """
        GIVEN a signed-in user without the founder role
        WHEN every internal panel is mounted and refreshed
        THEN no internal endpoint is requested
        """
        ctx = app_context
        billing = ctx.internal.observe_billing()
        users = ctx.internal.observe_users()
        await sign_in(ctx, "trader-1", TRADER_TOKEN)

        ctx.internal.refresh_all()
        ctx.on_focus()
        await settle(ctx.query_client)

        assert ctx.role_gate.is_privileged() == DENIED
        assert internal_requests(stub_store) == []
        assert ctx.internal.panel(billing).access_denied
        assert ctx.internal.panel(users).access_denied

    @pytest.mark.asyncio
    async def test_founder_sees_platform_data(self, app_context: AppContext, stub_store: StubStore):
        """
        GIVEN a signed-in founder
        WHEN the billing, logs and config panels load
        THEN they show the platform figures and the flags seed the editor
        """
        ctx = app_context
        await sign_in(ctx, "founder-1", FOUNDER_TOKEN)
        assert ctx.role_gate.is_privileged() == GRANTED

        billing = ctx.internal.observe_billing()
        logs = ctx.internal.observe_logs()
        ctx.internal.observe_config()
        users = ctx.internal.observe_users()
        await ctx.query_client.wait_idle()

        assert ctx.internal.panel(billing).data.monthly_revenue == Decimal("42580")
        assert ctx.internal.panel(logs).data.errors_24h == 12
        assert len(ctx.internal.panel(users).data) == 2
        assert ctx.internal.flag_editor.flags.ai_strategy_planner is True

        ctx.internal.toggle_flag("social_sharing")
        state = await ctx.internal.save_config()

        assert state.is_success
        assert stub_store.flags.social_sharing is True


# =============================================================================
# SESSION TESTS
# =============================================================================


class TestSignOut:
    """Tests for sign-out against the backend."""

    @pytest.mark.asyncio
    async def test_sign_out_drops_data_and_blocks_requests(
        self,
        app_context: AppContext,
        stub_store: StubStore,
    ):
        """
        GIVEN a trader with cached trades and chats
        WHEN the trader signs out
        THEN nothing is cached, the login page is shown and further requests
        fail without reaching the server
        """
        ctx = app_context
        await sign_in(ctx, "trader-1", TRADER_TOKEN)
        await ctx.trades.list_trades()
        await ctx.chats.create_chat()
        requests_before = len(stub_store.request_log)

        await ctx.sessions.sign_out()

        assert ctx.query_client.get_query_data(keys.TRADES) is None
        assert ctx.query_client.get_query_data(keys.CHATS) is None
        assert ctx.navigator.current_path == LOGIN_PATH

        with pytest.raises(UnauthenticatedError):
            await ctx.trades.list_trades()
        assert len(stub_store.request_log) == requests_before

    @pytest.mark.asyncio
    async def test_sign_out_discards_unsaved_flag_edits(
        self,
        app_context: AppContext,
        stub_store: StubStore,
    ):
        """
        GIVEN a founder with an unsaved feature flag edit
        WHEN the founder signs out and signs back in
        THEN the edit is gone and the editor is seeded from the server again
        """
        ctx = app_context
        await sign_in(ctx, "founder-1", FOUNDER_TOKEN)
        ctx.internal.observe_config()
        await ctx.query_client.wait_idle()
        ctx.internal.toggle_flag("social_sharing")
        assert ctx.internal.flag_editor.is_dirty

        await ctx.sessions.sign_out()

        assert ctx.internal.flag_editor.flags is None
        assert not ctx.internal.flag_editor.is_dirty

        await sign_in(ctx, "founder-1", FOUNDER_TOKEN)
        await ctx.query_client.wait_idle()

        assert ctx.internal.flag_editor.flags == stub_store.flags
        assert not ctx.internal.flag_editor.is_dirty


# =============================================================================
# TRADE TESTS
# =============================================================================


class TestTrades:
    """Trade CRUD through the gateway."""

    @pytest.mark.asyncio
    async def test_create_edit_delete(self, app_context: AppContext, stub_store: StubStore):
        """
        GIVEN a signed-in trader
        WHEN a trade is created, edited and deleted twice
        THEN each step succeeds and the server ends with no trades
        """
        ctx = app_context
        await sign_in(ctx, "trader-1", TRADER_TOKEN)
        trades = ctx.trades.observe_trades()
        await ctx.query_client.wait_idle()

        created = await ctx.trades.create_trade(
            TradeCreate(
                ticker="msft",
                entry_price=Decimal("400"),
                quantity=Decimal("10"),
                entry_date=date(2024, 6, 10),
            )
        )
        trade_id = created.data.id
        updated = await ctx.trades.update_trade(trade_id, TradeUpdate(exit_price=Decimal("405")))
        await ctx.query_client.wait_idle()

        assert updated.is_success
        [trade] = trades.result.data
        assert trade.ticker == "MSFT"
        assert trade.profit_loss == Decimal("50")

        csv_text = ctx.csv_exporter.export_text()
        assert "MSFT" in csv_text

        first = await ctx.trades.delete_trade(trade_id)
        second = await ctx.trades.delete_trade(trade_id)
        await ctx.query_client.wait_idle()

        assert first.is_success
        assert second.is_success
        assert stub_store.trades == {}
        assert trades.result.data == []

    @pytest.mark.asyncio
    async def test_server_analytics(self, app_context: AppContext, stub_store: StubStore):
        ctx = app_context
        await sign_in(ctx, "trader-1", TRADER_TOKEN)
        await ctx.trades.create_trade(
            TradeCreate(
                ticker="AAPL",
                entry_price=Decimal("178.50"),
                exit_price=Decimal("182.30"),
                quantity=Decimal("100"),
                entry_date=date(2024, 6, 10),
            )
        )

        observer = ctx.analytics.observe_analytics()
        await ctx.query_client.wait_idle()

        assert observer.result.data["total_trades"] == 1
        assert observer.result.data["win_rate"] == 100.0
