"""Pydantic schemas for chat endpoints."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from tradejournal.domain.models import (
    Chat,
    ChatThread,
    Message,
    MessageRole,
    DEFAULT_CHAT_TITLE,
)


class ChatCreateRequest(BaseModel):
    """Request schema for creating a chat."""

    title: str = Field(default=DEFAULT_CHAT_TITLE, max_length=255)


class SendMessageRequest(BaseModel):
    """Request schema for sending a message to the assistant."""

    chat_id: str
    message: str = Field(..., min_length=1)


class ChatResponse(BaseModel):
    """Response schema for a single chat."""

    id: str
    title: str = DEFAULT_CHAT_TITLE
    created_at: Optional[datetime] = None

    def to_domain(self) -> Chat:
        return Chat(id=self.id, title=self.title, created_at=self.created_at)


class MessageResponse(BaseModel):
    """Response schema for a single message."""

    id: str
    role: MessageRole
    content: str

    def to_domain(self) -> Message:
        return Message(id=self.id, role=self.role, content=self.content)


class ChatThreadResponse(BaseModel):
    """Response schema for a chat with its messages."""

    chat: ChatResponse
    messages: list[MessageResponse] = Field(default_factory=list)

    def to_domain(self) -> ChatThread:
        return ChatThread(
            chat=self.chat.to_domain(),
            messages=tuple(m.to_domain() for m in self.messages),
        )


class AssistantReply(BaseModel):
    """Assistant reply; the server may send a bare string or a message object."""

    id: Optional[str] = None
    role: MessageRole = MessageRole.ASSISTANT
    content: str


class SendMessageResponse(BaseModel):
    """Response schema for POST /ai/chat."""

    message: AssistantReply
    trade_extracted: bool = False

    @field_validator("message", mode="before")
    @classmethod
    def wrap_plain_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"content": v}
        return v
