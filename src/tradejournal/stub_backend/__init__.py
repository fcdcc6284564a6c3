"""In-memory FastAPI backend implementing the gateway surface."""

from tradejournal.stub_backend.main import API_PREFIX, create_app
from tradejournal.stub_backend.store import StubStore

__all__ = [
    "API_PREFIX",
    "create_app",
    "StubStore",
]
