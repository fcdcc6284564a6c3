"""In-memory auth, role and navigation providers for offline/testing use."""

import uuid
from datetime import datetime
from typing import Callable, Optional

from tradejournal.domain.models import AuthState, Session, User
from tradejournal.providers.auth_provider import AuthEvent, AuthStateListener


class InMemoryAuthProvider:
    """
    Auth backend kept in process memory.

    sign_in() / refresh_token() / sign_out() emit the same events a real
    backend would, so subscribers can be exercised deterministically.
    """

    def __init__(self):
        self._user: Optional[User] = None
        self._session: Optional[Session] = None
        self._listeners: list[AuthStateListener] = []
        self.get_session_calls = 0
        self.sign_out_calls = 0
        self.fail_with: Optional[Exception] = None

    def sign_in(
        self,
        user_id: str,
        email: Optional[str] = None,
        token: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Session:
        self._user = User(id=user_id, email=email)
        self._session = Session(
            user_id=user_id,
            token=token or uuid.uuid4().hex,
            expires_at=expires_at,
        )
        self._emit(AuthEvent.SIGNED_IN)
        return self._session

    def refresh_token(self, token: str) -> None:
        if self._session is None:
            return
        self._session = Session(
            user_id=self._session.user_id,
            token=token,
            expires_at=self._session.expires_at,
        )
        self._emit(AuthEvent.TOKEN_REFRESHED)

    async def get_session(self) -> AuthState:
        self.get_session_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return AuthState(user=self._user, session=self._session)

    def on_auth_state_change(self, listener: AuthStateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        self._user = None
        self._session = None
        self._emit(AuthEvent.SIGNED_OUT)

    def _emit(self, event: AuthEvent) -> None:
        for listener in list(self._listeners):
            listener(event, self._session)


class InMemoryRoleProvider:
    """Role table kept in process memory."""

    def __init__(self, roles: Optional[dict[str, set[str]]] = None):
        self._roles: dict[str, set[str]] = roles or {}
        self.calls = 0
        self.fail_with: Optional[Exception] = None

    def grant(self, user_id: str, role: str) -> None:
        self._roles.setdefault(user_id, set()).add(role)

    def revoke(self, user_id: str, role: str) -> None:
        self._roles.get(user_id, set()).discard(role)

    async def has_role(self, user_id: str, role: str) -> bool:
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return role in self._roles.get(user_id, set())


class RecordingNavigator:
    """Navigator that records visited paths."""

    def __init__(self):
        self.history: list[str] = []

    @property
    def current_path(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    def navigate(self, path: str) -> None:
        self.history.append(path)
