"""Session provider: the single source of truth for the current user."""

import asyncio
import logging
from typing import Callable, Optional

from tradejournal.cache import QueryClient, keys
from tradejournal.core.timezone import now_utc
from tradejournal.domain.models import AuthState, Session
from tradejournal.providers.auth_provider import (
    AuthEvent,
    AuthProvider,
    Navigator,
)

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth"

SessionListener = Callable[[AuthState], None]


class SessionProvider:
    """
    Wraps the auth backend behind the query cache.

    The first get_session() awaits the backend; later calls return the
    cached state and refresh it in the background once stale. Resolution
    failures resolve to a signed-out state and are never raised.
    """

    def __init__(
        self,
        client: QueryClient,
        auth: AuthProvider,
        navigator: Navigator,
        stale_seconds: float = 60.0,
    ):
        self._client = client
        self._auth = auth
        self._navigator = navigator
        self._stale_seconds = stale_seconds
        self._listeners: list[SessionListener] = []
        self._unsubscribe_auth: Optional[Callable[[], None]] = None

    def start(self) -> "SessionProvider":
        """Begin listening for auth-state changes."""
        if self._unsubscribe_auth is None:
            self._unsubscribe_auth = self._auth.on_auth_state_change(self._on_auth_event)
        return self

    def stop(self) -> None:
        if self._unsubscribe_auth is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None

    async def get_session(self) -> AuthState:
        state = await self._client.ensure_query_data(
            keys.AUTH_SESSION,
            self._resolve,
            stale_after=self._stale_seconds,
            retry=0,
        )
        return state or AuthState.signed_out()

    def current(self) -> AuthState:
        """Cached state without awaiting; signed out until first resolved."""
        return self._client.get_query_data(keys.AUTH_SESSION) or AuthState.signed_out()

    async def get_token(self) -> Optional[str]:
        """Bearer token of the current session, or None if absent or expired."""
        session = (await self.get_session()).session
        if session is None or session.is_expired(now_utc()):
            return None
        return session.token

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call listener with the new state whenever the session changes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_out(self) -> None:
        """
        Sign the user out.

        Every cached entity and the session are dropped before the backend
        call, so a slow network cannot leave authenticated data visible.
        """
        self._client.clear()
        self._client.set_query_data(
            keys.AUTH_SESSION, AuthState.signed_out(), stale_after=self._stale_seconds
        )
        self._emit()
        try:
            await self._auth.sign_out()
        finally:
            self._navigator.navigate(LOGIN_PATH)
        logger.info("Signed out")

    async def _resolve(self) -> AuthState:
        try:
            return await self._auth.get_session()
        except Exception as e:
            logger.warning(f"Session resolution failed, treating as signed out: {e}")
            return AuthState.signed_out()

    def _on_auth_event(self, event: AuthEvent, session: Optional[Session]) -> None:
        logger.debug(f"Auth event: {event.value}")
        self._client.invalidate_queries(keys.AUTH_SESSION, refetch=False)
        task = self._client.refetch_in_background(
            keys.AUTH_SESSION,
            self._resolve,
            stale_after=self._stale_seconds,
            retry=0,
            force=True,
        )
        task.add_done_callback(self._on_resolved)

    def _on_resolved(self, task: asyncio.Task) -> None:
        if not task.cancelled():
            self._emit()

    def _emit(self) -> None:
        state = self.current()
        for listener in list(self._listeners):
            listener(state)
