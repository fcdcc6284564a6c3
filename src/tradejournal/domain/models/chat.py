"""Chat and Message domain models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from tradejournal.domain.models.enums import MessageRole

DEFAULT_CHAT_TITLE = "New chat"
TITLE_MAX_LENGTH = 50

# Optimistic entries live in their own id namespace so rollback can find them
TEMP_ID_PREFIX = "temp-"


def new_temp_id() -> str:
    """Return a fresh id in the temporary namespace."""
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"


def is_temporary_id(entity_id: str) -> bool:
    """Return True for ids issued by new_temp_id()."""
    return entity_id.startswith(TEMP_ID_PREFIX)


def title_from_message(content: str) -> str:
    """Derive a chat title from the first message of a chat."""
    return content.strip()[:TITLE_MAX_LENGTH] or DEFAULT_CHAT_TITLE


@dataclass(frozen=True)
class Message:
    """A single message in a chat thread."""

    id: str
    role: MessageRole
    content: str

    def __post_init__(self) -> None:
        if isinstance(self.role, str):
            object.__setattr__(self, "role", MessageRole(self.role))

    @property
    def is_temporary(self) -> bool:
        """Return True for optimistic messages not yet confirmed by the server."""
        return is_temporary_id(self.id)


@dataclass(frozen=True)
class Chat:
    """A chat session as listed in the sidebar."""

    id: str
    title: str = DEFAULT_CHAT_TITLE
    created_at: Optional[datetime] = field(default=None)

    @property
    def is_temporary(self) -> bool:
        return is_temporary_id(self.id)

    @property
    def has_default_title(self) -> bool:
        return self.title == DEFAULT_CHAT_TITLE


@dataclass(frozen=True)
class ChatThread:
    """A chat together with its ordered messages."""

    chat: Chat
    messages: tuple[Message, ...] = ()

    @property
    def confirmed_messages(self) -> tuple[Message, ...]:
        return tuple(m for m in self.messages if not m.is_temporary)

    @property
    def temporary_messages(self) -> tuple[Message, ...]:
        return tuple(m for m in self.messages if m.is_temporary)
