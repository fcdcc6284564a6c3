"""SQLAlchemy ORM model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Enum as SqlEnum
from sqlalchemy.orm import relationship

from tradejournal.core.timezone import now_utc
from tradejournal.domain.models.enums import MessageRole
from tradejournal.repositories.sqlalchemy.database import Base


class ChatORM(Base):
    """SQLAlchemy model for a stored chat."""

    __tablename__ = "chats"

    chat_id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=True)
    saved_at = Column(DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc)

    messages = relationship(
        "MessageORM",
        back_populates="chat",
        order_by="MessageORM.position",
        cascade="all, delete-orphan",
    )


class MessageORM(Base):
    """SQLAlchemy model for a stored message; position keeps thread order."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(String(64), ForeignKey("chats.chat_id"), nullable=False, index=True)
    message_id = Column(String(64), nullable=False)
    position = Column(Integer, nullable=False)
    role = Column(SqlEnum(MessageRole), nullable=False)
    content = Column(Text, nullable=False)

    chat = relationship("ChatORM", back_populates="messages")
