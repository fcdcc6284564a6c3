"""Engine and session management for the local transcript store."""

from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from tradejournal.config.settings import get_settings

Base = declarative_base()

# One engine per process; reset_database() drops it so settings can change
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _connect(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are used from the event loop thread and uvicorn workers alike
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, echo=False)


def get_engine() -> Engine:
    """Engine for TRADEJOURNAL_DATABASE_URL (default: transcripts.db in data_dir)."""
    global _engine
    if _engine is None:
        _engine = _connect(get_settings().get_database_url())
    return _engine


def get_session() -> Session:
    """Open a new session on the transcript store."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal()


def init_db() -> None:
    """Create the chat and message tables if missing."""
    from tradejournal.repositories.sqlalchemy import orm_models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def init_db_with_path(db_path: Path) -> None:
    """Point the transcript store at a SQLite file and create its tables."""
    global _engine

    reset_database()
    _engine = _connect(f"sqlite:///{db_path}")
    init_db()


def reset_database() -> None:
    """Dispose of the engine so the next access reconnects."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()

    _engine = None
    _SessionLocal = None
