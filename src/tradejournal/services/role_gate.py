"""Role gate: whether the current user may see internal-console data."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from tradejournal.cache import QueryClient, keys
from tradejournal.domain.models import AuthState
from tradejournal.providers.auth_provider import FOUNDER_ROLE, RoleProvider
from tradejournal.services.session_provider import SessionProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleStatus:
    """value is False whenever loading is True."""

    value: bool = False
    loading: bool = False

    @property
    def is_granted(self) -> bool:
        return self.value and not self.loading


LOADING = RoleStatus(value=False, loading=True)
DENIED = RoleStatus(value=False, loading=False)
GRANTED = RoleStatus(value=True, loading=False)

RoleListener = Callable[[RoleStatus], None]


class RoleGate:
    """
    Resolves the founder role for the signed-in user.

    Starts out loading and re-evaluates on every session change. Any
    failure, or no signed-in user, resolves to denied.
    """

    def __init__(
        self,
        client: QueryClient,
        sessions: SessionProvider,
        roles: RoleProvider,
        role: str = FOUNDER_ROLE,
    ):
        self._client = client
        self._sessions = sessions
        self._roles = roles
        self._role = role
        self._status = LOADING
        self._generation = 0
        self._listeners: list[RoleListener] = []
        self._task: Optional[asyncio.Task] = None
        self._unsubscribe_session: Optional[Callable[[], None]] = None

    def start(self) -> "RoleGate":
        """Subscribe to session changes and begin the first evaluation."""
        if self._unsubscribe_session is None:
            self._unsubscribe_session = self._sessions.subscribe(self._on_session_change)
            self._schedule()
        return self

    def stop(self) -> None:
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None

    def is_privileged(self) -> RoleStatus:
        return self._status

    async def wait_resolved(self) -> RoleStatus:
        """Wait for the evaluation in progress, if any."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        return self._status

    async def refresh(self) -> RoleStatus:
        """Re-evaluate the role for the current session."""
        self._generation += 1
        generation = self._generation
        self._set_status(LOADING)

        state = await self._sessions.get_session()
        granted = await self._lookup(state)

        if generation == self._generation:
            self._set_status(GRANTED if granted else DENIED)
        return self._status

    def subscribe(self, listener: RoleListener) -> Callable[[], None]:
        """Call listener whenever the status changes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _lookup(self, state: AuthState) -> bool:
        user_id = state.user_id
        if user_id is None or not state.is_authenticated:
            return False

        async def has_role() -> bool:
            return await self._roles.has_role(user_id, self._role)

        try:
            return bool(
                await self._client.ensure_query_data(keys.user_role(user_id), has_role, retry=0)
            )
        except Exception as e:
            logger.warning(f"Role lookup failed for {user_id}, denying: {e}")
            return False

    def _on_session_change(self, state: AuthState) -> None:
        self._schedule()

    def _schedule(self) -> None:
        # Flip to loading before yielding so dependents disable immediately
        self._set_status(LOADING)
        self._task = asyncio.ensure_future(self.refresh())

    def _set_status(self, status: RoleStatus) -> None:
        if status == self._status:
            return
        self._status = status
        for listener in list(self._listeners):
            listener(status)
