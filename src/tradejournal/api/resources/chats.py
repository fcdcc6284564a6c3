"""Chat and assistant endpoints."""

from tradejournal.api.client import ApiClient
from tradejournal.api.schemas import (
    ChatCreateRequest,
    ChatResponse,
    ChatThreadResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from tradejournal.domain.models import Chat, ChatThread, DEFAULT_CHAT_TITLE


class ChatAPI:
    """Typed calls for /chats and /ai/chat."""

    def __init__(self, client: ApiClient):
        self._client = client

    async def list_chats(self) -> list[Chat]:
        rows = await self._client.request_list("GET", "/chats", ChatResponse)
        return [row.to_domain() for row in rows]

    async def create_chat(self, title: str = DEFAULT_CHAT_TITLE) -> Chat:
        body = ChatCreateRequest(title=title)
        response = await self._client.request_model(
            "POST", "/chats", ChatResponse, json=body.model_dump()
        )
        return response.to_domain()

    async def get_chat(self, chat_id: str) -> ChatThread:
        response = await self._client.request_model(
            "GET", f"/chats/{chat_id}", ChatThreadResponse
        )
        return response.to_domain()

    async def delete_chat(self, chat_id: str) -> None:
        await self._client.request("DELETE", f"/chats/{chat_id}")

    async def send_message(self, chat_id: str, message: str) -> SendMessageResponse:
        """Send a user message; the reply says whether a trade was extracted."""
        body = SendMessageRequest(chat_id=chat_id, message=message)
        return await self._client.request_model(
            "POST", "/ai/chat", SendMessageResponse, json=body.model_dump()
        )
