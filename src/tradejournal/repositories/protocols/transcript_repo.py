"""Transcript repository protocol for locally stored chat threads."""

from typing import Protocol, Optional

from tradejournal.domain.models import Chat, ChatThread


class TranscriptRepository(Protocol):
    """Interface for chat transcript data access."""

    def save_thread(self, thread: ChatThread) -> None:
        """Store a thread, replacing any earlier copy of the same chat."""
        ...

    def get_thread(self, chat_id: str) -> Optional[ChatThread]:
        """Get a stored thread by chat id."""
        ...

    def list_chats(self) -> list[Chat]:
        """List stored chats, newest first."""
        ...

    def delete_thread(self, chat_id: str) -> None:
        """Delete a stored thread (no-op if absent)."""
        ...
