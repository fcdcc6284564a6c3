"""FastAPI application for the development stub backend."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from tradejournal.config.logging_config import setup_logging
from tradejournal.core.exceptions import AppError
from tradejournal.stub_backend.routers import (
    ai_router,
    chats_router,
    internal_router,
    trades_router,
)
from tradejournal.stub_backend.store import StubStore

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    setup_logging()
    yield


def create_app(store: Optional[StubStore] = None) -> FastAPI:
    """
    Build the stub backend.

    Serves the gateway surface under /api from an in-memory StubStore.
    """
    app = FastAPI(
        title="Trade Journal Stub Backend",
        description="In-memory gateway for local development and tests",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store or StubStore()

    api = APIRouter(prefix=API_PREFIX)
    api.include_router(chats_router)
    api.include_router(trades_router)
    api.include_router(ai_router)
    api.include_router(internal_router)
    app.include_router(api)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Global handler for application errors."""
        return JSONResponse(
            status_code=400,
            content={"error": exc.code, "detail": exc.message},
        )

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
