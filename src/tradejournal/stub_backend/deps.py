"""Dependencies for the stub backend routers."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from tradejournal.stub_backend.store import StubStore


def get_store(request: Request) -> StubStore:
    """Provide the StubStore attached to the app."""
    return request.app.state.store


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    store: StubStore = Depends(get_store),
) -> str:
    """Resolve the bearer token to a user id (401 if missing or unknown)."""
    store.request_log.append(f"{request.method} {request.url.path}")
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    user_id = store.user_for_token(authorization.removeprefix("Bearer ").strip())
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user_id


def require_founder(
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
) -> str:
    """Internal endpoints are founder-only (403 otherwise)."""
    if user_id not in store.founders:
        raise HTTPException(status_code=403, detail="Access Denied")
    return user_id


def check_failure(store: StubStore, operation: str) -> None:
    """Raise the failure queued with StubStore.fail_next(), if any."""
    failure = store.take_failure(operation)
    if failure is not None:
        status_code, detail = failure
        raise HTTPException(status_code=status_code, detail=detail)
