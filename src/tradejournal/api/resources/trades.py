"""Trade and analytics endpoints."""

from tradejournal.api.client import ApiClient
from tradejournal.api.schemas import (
    AnalyticsResponse,
    TradeCreateRequest,
    TradeResponse,
    TradeUpdateRequest,
)
from tradejournal.domain.models import Trade, TradeCreate


class TradeAPI:
    """Typed calls for /trades and /ai/analytics."""

    def __init__(self, client: ApiClient):
        self._client = client

    async def list_trades(self) -> list[Trade]:
        rows = await self._client.request_list("GET", "/trades", TradeResponse)
        return [row.to_domain() for row in rows]

    async def create_trade(self, data: TradeCreate) -> Trade:
        body = TradeCreateRequest.from_domain(data)
        response = await self._client.request_model(
            "POST", "/trades", TradeResponse, json=body.model_dump(mode="json")
        )
        return response.to_domain()

    async def update_trade(self, trade_id: str, body: TradeUpdateRequest) -> Trade:
        response = await self._client.request_model(
            "PATCH", f"/trades/{trade_id}", TradeResponse, json=body.to_payload()
        )
        return response.to_domain()

    async def delete_trade(self, trade_id: str) -> None:
        await self._client.request("DELETE", f"/trades/{trade_id}")

    async def get_analytics(self) -> dict:
        response = await self._client.request_model(
            "POST", "/ai/analytics", AnalyticsResponse, json={}
        )
        return response.to_domain()
