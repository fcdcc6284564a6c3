"""SQLAlchemy repository implementations."""

from tradejournal.repositories.sqlalchemy.database import (
    get_engine,
    get_session,
    init_db,
    init_db_with_path,
    reset_database,
    Base,
)
from tradejournal.repositories.sqlalchemy.transcript_repo import SqlAlchemyTranscriptRepository

__all__ = [
    "get_engine",
    "get_session",
    "init_db",
    "init_db_with_path",
    "reset_database",
    "Base",
    "SqlAlchemyTranscriptRepository",
]
