"""SQLAlchemy implementation of TranscriptRepository."""

from typing import Optional

from sqlalchemy.orm import Session

from tradejournal.core.timezone import to_utc
from tradejournal.domain.models import Chat, ChatThread, Message
from tradejournal.repositories.sqlalchemy.orm_models import ChatORM, MessageORM


class SqlAlchemyTranscriptRepository:
    """
    SQLAlchemy-backed store of confirmed chat transcripts.

    Temporary (optimistic) messages are never written.
    """

    def __init__(self, db: Session):
        self._db = db

    def save_thread(self, thread: ChatThread) -> None:
        orm_chat = self._db.get(ChatORM, thread.chat.id)
        if orm_chat is None:
            orm_chat = ChatORM(chat_id=thread.chat.id)
            self._db.add(orm_chat)

        orm_chat.title = thread.chat.title
        orm_chat.created_at = thread.chat.created_at
        orm_chat.messages = [
            MessageORM(
                message_id=m.id,
                position=i,
                role=m.role,
                content=m.content,
            )
            for i, m in enumerate(thread.confirmed_messages)
        ]
        self._db.commit()

    def get_thread(self, chat_id: str) -> Optional[ChatThread]:
        orm_chat = self._db.get(ChatORM, chat_id)
        if orm_chat is None:
            return None
        return ChatThread(
            chat=self._chat_to_domain(orm_chat),
            messages=tuple(self._message_to_domain(m) for m in orm_chat.messages),
        )

    def list_chats(self) -> list[Chat]:
        orm_chats = (
            self._db.query(ChatORM)
            .order_by(ChatORM.created_at.desc())
            .all()
        )
        return [self._chat_to_domain(c) for c in orm_chats]

    def delete_thread(self, chat_id: str) -> None:
        orm_chat = self._db.get(ChatORM, chat_id)
        if orm_chat is not None:
            self._db.delete(orm_chat)
            self._db.commit()

    @staticmethod
    def _chat_to_domain(orm: ChatORM) -> Chat:
        """Convert ORM chat to domain model."""
        # SQLite drops tzinfo on the way back
        created_at = to_utc(orm.created_at) if orm.created_at else None
        return Chat(id=orm.chat_id, title=orm.title, created_at=created_at)

    @staticmethod
    def _message_to_domain(orm: MessageORM) -> Message:
        """Convert ORM message to domain model."""
        return Message(id=orm.message_id, role=orm.role, content=orm.content)
