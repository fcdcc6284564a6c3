"""Application context for in-process service management.

Constructs the query cache once and hands the same instance to every
service. Nothing else holds a module-level cache.
"""

import time
from pathlib import Path
from typing import Callable, Optional

import httpx

from tradejournal.api import ApiClient
from tradejournal.api.resources import ChatAPI, InternalAPI, TradeAPI
from tradejournal.cache import QueryClient
from tradejournal.config.settings import Settings, get_settings, set_settings
from tradejournal.domain.models import AuthState
from tradejournal.csv import TradeCsvExporter
from tradejournal.providers import (
    AuthProvider,
    InMemoryAuthProvider,
    InMemoryRoleProvider,
    Navigator,
    RecordingNavigator,
    RoleProvider,
)
from tradejournal.repositories.sqlalchemy import (
    SqlAlchemyTranscriptRepository,
    get_session,
    init_db,
    reset_database,
)
from tradejournal.services import (
    AnalyticsService,
    ChatService,
    InternalConsoleService,
    Notifier,
    RoleGate,
    SessionProvider,
    TradeService,
)


class AppContext:
    """
    Application context providing access to all services.

    Collaborators default to the in-memory providers; pass real ones (and
    an httpx transport, in tests) to connect elsewhere.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        auth: Optional[AuthProvider] = None,
        roles: Optional[RoleProvider] = None,
        navigator: Optional[Navigator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if settings is not None:
            set_settings(settings)
        self._settings = get_settings()

        self.auth = auth or InMemoryAuthProvider()
        self.roles = roles or InMemoryRoleProvider()
        self.navigator = navigator or RecordingNavigator()

        # The one cache for this client; reset only by sign-out
        self.query_client = QueryClient.from_settings(self._settings, clock=clock)
        self.notifier = Notifier()

        self.sessions = SessionProvider(
            self.query_client,
            self.auth,
            self.navigator,
            stale_seconds=self._settings.session_stale_seconds,
        )
        self.role_gate = RoleGate(self.query_client, self.sessions, self.roles)

        self.api_client = ApiClient(
            base_url=self._settings.get_api_url(),
            token_provider=self.sessions.get_token,
            timeout_seconds=self._settings.request_timeout_seconds,
            transport=transport,
        )

        self._db_session = None
        self._chat_service: Optional[ChatService] = None
        self._trade_service: Optional[TradeService] = None
        self._analytics_service: Optional[AnalyticsService] = None
        self._internal_service: Optional[InternalConsoleService] = None
        self._csv_exporter: Optional[TradeCsvExporter] = None
        self._started = False
        self._user_id: Optional[str] = None
        self._unsubscribe_session: Optional[Callable[[], None]] = None

    def start(self) -> "AppContext":
        """Subscribe to auth events and begin role resolution. Needs a running loop."""
        if not self._started:
            self.sessions.start()
            self.role_gate.start()
            self._unsubscribe_session = self.sessions.subscribe(self._on_session_change)
            self._started = True
        return self

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def data_dir(self) -> Path:
        """Get the current data directory."""
        return self._settings.get_data_dir()

    def _get_transcript_repo(self) -> Optional[SqlAlchemyTranscriptRepository]:
        if not self._settings.transcript_store_enabled:
            return None
        if self._db_session is None:
            reset_database()
            init_db()
            self._db_session = get_session()
        return SqlAlchemyTranscriptRepository(self._db_session)

    # Service accessors

    @property
    def chats(self) -> ChatService:
        """Get the ChatService instance."""
        if self._chat_service is None:
            self._chat_service = ChatService(
                self.query_client,
                ChatAPI(self.api_client),
                self.notifier,
                transcripts=self._get_transcript_repo(),
            )
        return self._chat_service

    @property
    def trades(self) -> TradeService:
        """Get the TradeService instance."""
        if self._trade_service is None:
            self._trade_service = TradeService(
                self.query_client, TradeAPI(self.api_client), self.notifier
            )
        return self._trade_service

    @property
    def analytics(self) -> AnalyticsService:
        """Get the AnalyticsService instance."""
        if self._analytics_service is None:
            self._analytics_service = AnalyticsService(
                self.query_client, TradeAPI(self.api_client)
            )
        return self._analytics_service

    @property
    def internal(self) -> InternalConsoleService:
        """Get the InternalConsoleService instance."""
        if self._internal_service is None:
            self._internal_service = InternalConsoleService(
                self.query_client,
                InternalAPI(self.api_client),
                self.role_gate,
                self.notifier,
            )
        return self._internal_service

    @property
    def csv_exporter(self) -> TradeCsvExporter:
        """Get the TradeCsvExporter instance."""
        if self._csv_exporter is None:
            self._csv_exporter = TradeCsvExporter(self.trades)
        return self._csv_exporter

    def _on_session_change(self, state: AuthState) -> None:
        # Per-user state held outside the query cache goes with the user
        if state.user_id == self._user_id:
            return
        self._user_id = state.user_id
        if self._chat_service is not None:
            self._chat_service.reset()
        if self._internal_service is not None:
            self._internal_service.reset()

    def on_focus(self) -> None:
        """The client regained focus: refresh every mounted query."""
        self.query_client.on_focus()

    async def aclose(self) -> None:
        """Clean up resources."""
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None
        self.role_gate.stop()
        self.sessions.stop()
        if self._internal_service is not None:
            self._internal_service.close()
        await self.query_client.wait_idle()
        await self.api_client.aclose()
        if self._db_session is not None:
            self._db_session.close()
            self._db_session = None
            reset_database()


# Global application context
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: Optional[AppContext]) -> None:
    """Set (or clear) the global application context."""
    global _app_context
    _app_context = context
