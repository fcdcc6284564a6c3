"""Stub backend routers."""

from tradejournal.stub_backend.routers.chats import router as chats_router
from tradejournal.stub_backend.routers.trades import router as trades_router
from tradejournal.stub_backend.routers.ai import router as ai_router
from tradejournal.stub_backend.routers.internal import router as internal_router

__all__ = [
    "chats_router",
    "trades_router",
    "ai_router",
    "internal_router",
]
