"""Protocols for the external collaborators: auth backend, role lookup, navigation."""

from enum import Enum
from typing import Callable, Optional, Protocol

from tradejournal.domain.models import AuthState, Session


class AuthEvent(str, Enum):
    """Auth-state change events emitted by the auth backend."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


AuthStateListener = Callable[[AuthEvent, Optional[Session]], None]

FOUNDER_ROLE = "founder"


class AuthProvider(Protocol):
    """
    Protocol for the authentication backend.

    Implementations issue sessions and refresh tokens transparently;
    get_session() returns the current state, refreshing if needed.
    """

    async def get_session(self) -> AuthState:
        """Return the current user and session (both None when signed out)."""
        ...

    def on_auth_state_change(self, listener: AuthStateListener) -> Callable[[], None]:
        """Register a listener for auth events; returns an unsubscribe callable."""
        ...

    async def sign_out(self) -> None:
        """End the session on the backend."""
        ...


class RoleProvider(Protocol):
    """Protocol for role lookups (may be a network call)."""

    async def has_role(self, user_id: str, role: str) -> bool:
        ...


class Navigator(Protocol):
    """Protocol for view navigation."""

    def navigate(self, path: str) -> None:
        ...
