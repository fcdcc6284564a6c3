"""Repository protocol definitions (interfaces)."""

from tradejournal.repositories.protocols.transcript_repo import TranscriptRepository

__all__ = [
    "TranscriptRepository",
]
