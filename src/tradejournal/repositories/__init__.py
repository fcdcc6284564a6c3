"""Repository layer for the local transcript store."""

from tradejournal.repositories.protocols import TranscriptRepository
from tradejournal.repositories.sqlalchemy import SqlAlchemyTranscriptRepository

__all__ = [
    "TranscriptRepository",
    "SqlAlchemyTranscriptRepository",
]
