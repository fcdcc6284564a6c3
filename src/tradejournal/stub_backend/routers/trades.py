import uuid

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from pydantic import ValidationError as PydanticValidationError

from tradejournal.api.schemas import TradeCreateRequest, TradeUpdateRequest
from tradejournal.core.timezone import now_utc
from tradejournal.domain.models import Trade
from tradejournal.stub_backend.deps import check_failure, get_current_user, get_store
from tradejournal.stub_backend.store import StubStore

router = APIRouter(prefix="/trades", tags=["trades"])


def trade_json(trade: Trade) -> dict:
    def num(value):
        return float(value) if value is not None else None

    return {
        "id": trade.id,
        "ticker": trade.ticker,
        "entry_price": num(trade.entry_price),
        "exit_price": num(trade.exit_price),
        "quantity": num(trade.quantity),
        "entry_date": trade.entry_date.isoformat(),
        "exit_date": trade.exit_date.isoformat() if trade.exit_date else None,
        "profit_loss": num(trade.profit_loss),
        "notes": trade.notes,
        "created_at": trade.created_at.isoformat() if trade.created_at else None,
    }


@router.get("")
def list_trades(
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
):
    """List the caller's trades, newest entry first."""
    check_failure(store, "list_trades")
    return [trade_json(t) for t in store.trades_for(user_id)]


@router.post("", status_code=201)
def create_trade(
    data: TradeCreateRequest,
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
):
    """Log a trade. profit_loss is recomputed from the prices."""
    check_failure(store, "create_trade")
    trade = Trade(
        id=str(uuid.uuid4()),
        ticker=data.ticker,
        entry_price=data.entry_price,
        exit_price=data.exit_price,
        quantity=data.quantity,
        entry_date=data.entry_date,
        exit_date=data.exit_date,
        notes=data.notes,
        created_at=now_utc(),
    )
    return trade_json(store.add_trade(user_id, trade))


@router.patch("/{trade_id}")
def update_trade(
    trade_id: str,
    payload: dict = Body(...),
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
):
    """Apply a partial update."""
    check_failure(store, "update_trade")
    current = store.get_trade(user_id, trade_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Trade not found")
    try:
        patch = TradeUpdateRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    changes = patch.model_dump(exclude_unset=True)
    changes.pop("profit_loss", None)
    return trade_json(store.add_trade(user_id, current.with_changes(**changes)))


@router.delete("/{trade_id}", status_code=204)
def delete_trade(
    trade_id: str,
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
):
    """Delete a trade."""
    check_failure(store, "delete_trade")
    if store.get_trade(user_id, trade_id) is None:
        raise HTTPException(status_code=404, detail="Trade not found")
    del store.trades[trade_id]
    return Response(status_code=204)
