import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from tradejournal.api.schemas import SendMessageRequest
from tradejournal.core.timezone import now_utc
from tradejournal.domain.models import Trade
from tradejournal.services.analytics_service import compute_trade_stats
from tradejournal.stub_backend.deps import check_failure, get_current_user, get_store
from tradejournal.stub_backend.store import StubStore
from tradejournal.stub_backend.trade_extraction import extract_trade

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/chat")
def send_message(
    data: SendMessageRequest,
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
):
    """Store the user's message, reply, and log any trade it describes."""
    check_failure(store, "send_message")
    chat = store.get_chat(user_id, data.chat_id)
    if chat is None:
        raise HTTPException(status_code=404, detail="Chat not found")

    store.append_message(chat, "user", data.message)

    extracted = extract_trade(data.message, today=now_utc().date())
    if extracted is not None:
        trade = store.add_trade(
            user_id,
            Trade(
                id=str(uuid.uuid4()),
                ticker=extracted.ticker,
                entry_price=extracted.entry_price,
                exit_price=extracted.exit_price,
                quantity=extracted.quantity,
                entry_date=extracted.entry_date,
                exit_date=extracted.exit_date,
                notes=extracted.notes,
                created_at=now_utc(),
            ),
        )
        if trade.is_closed:
            reply = (
                f"Logged {trade.ticker}: {trade.quantity} @ {trade.entry_price} -> "
                f"{trade.exit_price}, P&L {trade.profit_loss:.2f}."
            )
        else:
            reply = f"Logged open position in {trade.ticker}: {trade.quantity} @ {trade.entry_price}."
    else:
        reply = (
            "I couldn't find a trade in that message. Describe it like "
            '"Bought AAPL at 178.50, sold at 182.30, qty 100".'
        )

    message = store.append_message(chat, "assistant", reply)
    return {"message": message, "trade_extracted": extracted is not None}


@router.post("/analytics")
def analytics(
    payload: Optional[dict] = Body(default=None),
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
):
    """Aggregate statistics over the caller's trades."""
    check_failure(store, "analytics")
    trades = store.trades_for(user_id)
    stats = compute_trade_stats(trades)

    by_ticker: dict[str, float] = {}
    for trade in trades:
        if trade.is_closed:
            by_ticker[trade.ticker] = by_ticker.get(trade.ticker, 0.0) + float(trade.profit_loss)

    insights = []
    if by_ticker:
        best = max(by_ticker, key=by_ticker.get)
        insights.append(f"{best} is your most profitable ticker.")
    if stats.open_trades:
        insights.append(f"You have {stats.open_trades} open position(s).")

    return {
        "total_trades": stats.total_trades,
        "open_trades": stats.open_trades,
        "closed_trades": stats.closed_trades,
        "total_profit_loss": float(stats.total_profit_loss),
        "win_rate": float(stats.win_rate),
        "average_trade": float(stats.average_trade),
        "profit_by_ticker": by_ticker,
        "insights": insights,
    }
