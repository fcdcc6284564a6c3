"""Internal console: founder-only platform metrics and feature flags."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Generic, Iterable, Optional, TypeVar

from tradejournal.api.resources import InternalAPI
from tradejournal.cache import Mutation, MutationState, MutationStatus, QueryClient, QueryObserver, keys
from tradejournal.cache.keys import QueryKey
from tradejournal.core.exceptions import AppError, AuthorizationDeniedError
from tradejournal.core.timezone import now_utc
from tradejournal.domain.models import (
    BillingMetrics,
    ChatSessionSummary,
    FeatureFlags,
    InternalAnalytics,
    LogData,
    OverviewMetrics,
    SystemMetrics,
    UserData,
)
from tradejournal.services.notifications import Notifier
from tradejournal.services.role_gate import RoleGate, RoleStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIG_SCOPE = "internal-config"

# Seconds each panel stays fresh
PANEL_STALE_SECONDS = {
    keys.INTERNAL_BILLING: 300.0,
    keys.INTERNAL_LOGS: 15.0,
    keys.INTERNAL_CONFIG: 600.0,
}
DEFAULT_PANEL_STALE_SECONDS = 60.0


@dataclass(frozen=True)
class PanelState(Generic[T]):
    """
    What an internal-console panel shows.

    access_denied is distinct from is_error: it is final for the current
    user and offers no retry.
    """

    data: Optional[T] = None
    is_loading: bool = False
    is_fetching: bool = False
    is_error: bool = False
    error: Optional[Exception] = None
    access_denied: bool = False


def search_users(users: Iterable[UserData], query: str) -> list[UserData]:
    """Users whose pseudonymous id contains query (case-insensitive)."""
    needle = query.strip().lower()
    return [u for u in users if needle in u.pseudonymous_id.lower()]


def count_active_users(users: Iterable[UserData], now: Optional[datetime] = None) -> int:
    now = now or now_utc()
    return sum(1 for u in users if u.is_active(now))


class FeatureFlagEditor:
    """
    Editable copy of the feature flags.

    Seeded once per signed-in user, when the configuration first loads;
    later refetches do not overwrite local edits.
    """

    def __init__(self):
        self._flags: Optional[FeatureFlags] = None
        self._saved: Optional[FeatureFlags] = None

    @property
    def is_seeded(self) -> bool:
        return self._flags is not None

    @property
    def flags(self) -> Optional[FeatureFlags]:
        return self._flags

    @property
    def is_dirty(self) -> bool:
        return self._flags is not None and self._flags != self._saved

    def seed(self, flags: Optional[FeatureFlags]) -> None:
        if self._flags is None and flags is not None:
            self._flags = flags
            self._saved = flags

    def toggle(self, name: str) -> FeatureFlags:
        if self._flags is None:
            raise AppError("Configuration has not loaded yet", code="CONFIG_NOT_LOADED")
        self._flags = self._flags.toggled(name)
        return self._flags

    def mark_saved(self, flags: FeatureFlags) -> None:
        self._flags = flags
        self._saved = flags

    def reset(self) -> None:
        """Drop the flags and any unsaved edits; the next load seeds again."""
        self._flags = None
        self._saved = None


class InternalConsoleService:
    """
    Founder-only dashboards.

    Every query is created disabled unless the role gate has already
    resolved to granted, and is enabled or disabled as the gate changes, so
    nothing is requested while the role is loading or after it is denied.
    """

    def __init__(
        self,
        client: QueryClient,
        api: InternalAPI,
        gate: RoleGate,
        notifier: Notifier,
    ):
        self._client = client
        self._api = api
        self._gate = gate
        self._notifier = notifier
        self._observers: list[QueryObserver] = []
        self._unsubscribe_gate: Optional[Callable[[], None]] = gate.subscribe(self._on_role_change)
        self.flag_editor = FeatureFlagEditor()

        self._save_config = Mutation(
            client,
            self._guarded(self._api.save_config),
            on_success=self._config_saved,
            on_error=self._config_failed,
            scope=lambda _: CONFIG_SCOPE,
            name="save-config",
        )

    # Queries

    def observe_users(self) -> QueryObserver[list[UserData]]:
        return self._observe(keys.INTERNAL_USERS, self._api.get_users)

    def observe_overview(self) -> QueryObserver[OverviewMetrics]:
        return self._observe(keys.INTERNAL_OVERVIEW, self._api.get_overview_metrics)

    def observe_analytics(self) -> QueryObserver[InternalAnalytics]:
        return self._observe(keys.INTERNAL_ANALYTICS, self._api.get_analytics)

    def observe_billing(self) -> QueryObserver[BillingMetrics]:
        return self._observe(keys.INTERNAL_BILLING, self._api.get_billing_metrics)

    def observe_sessions(self) -> QueryObserver[list[ChatSessionSummary]]:
        return self._observe(keys.INTERNAL_SESSIONS, self._api.get_sessions)

    def observe_system(self) -> QueryObserver[SystemMetrics]:
        return self._observe(keys.INTERNAL_SYSTEM, self._api.get_system_metrics)

    def observe_logs(self) -> QueryObserver[LogData]:
        return self._observe(keys.INTERNAL_LOGS, self._api.get_logs)

    def observe_config(self) -> QueryObserver[FeatureFlags]:
        """Observe the feature flags; the first successful load seeds flag_editor."""
        return self._observe(
            keys.INTERNAL_CONFIG, self._api.get_config, on_success=self.flag_editor.seed
        )

    def panel(self, observer: QueryObserver[T]) -> PanelState[T]:
        """Combine an observer's result with the role status."""
        status = self._gate.is_privileged()
        if status.loading:
            return PanelState(is_loading=True)
        if not status.value:
            return PanelState(access_denied=True)

        result = observer.result
        if isinstance(result.error, AuthorizationDeniedError):
            return PanelState(access_denied=True, error=result.error)
        return PanelState(
            data=result.data,
            is_loading=result.is_loading,
            is_fetching=result.is_fetching,
            is_error=result.is_error,
            error=result.error,
        )

    def refresh_all(self) -> None:
        """Mark every internal aggregate stale; mounted panels refetch if permitted."""
        self._client.invalidate_queries(keys.INTERNAL)

    # Feature flags

    def toggle_flag(self, name: str) -> FeatureFlags:
        return self.flag_editor.toggle(name)

    async def save_config(self) -> MutationState[FeatureFlags]:
        flags = self.flag_editor.flags
        if flags is None:
            return MutationState(
                status=MutationStatus.ERROR,
                error=AppError("Configuration has not loaded yet", code="CONFIG_NOT_LOADED"),
            )
        return await self._save_config.mutate(flags)

    def reset(self) -> None:
        """Forget the signed-out user's flag edits."""
        if self.flag_editor.is_dirty:
            logger.info("Discarding unsaved feature flag edits")
        self.flag_editor.reset()

    def close(self) -> None:
        """Unmount every panel and stop following the role gate."""
        for observer in self._observers:
            observer.unmount()
        self._observers.clear()
        if self._unsubscribe_gate is not None:
            self._unsubscribe_gate()
            self._unsubscribe_gate = None

    # Internals

    def _observe(
        self,
        key: QueryKey,
        fetch: Callable[[], Awaitable[Any]],
        on_success: Optional[Callable[[Any], None]] = None,
    ) -> QueryObserver:
        observer = self._client.observe(
            key,
            self._guarded(fetch),
            enabled=self._gate.is_privileged().is_granted,
            stale_after=PANEL_STALE_SECONDS.get(key, DEFAULT_PANEL_STALE_SECONDS),
            on_success=on_success,
        )
        self._observers.append(observer)
        return observer

    def _guarded(self, fetch: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        async def call(*args) -> T:
            if not self._gate.is_privileged().is_granted:
                raise AuthorizationDeniedError()
            return await fetch(*args)

        return call

    def _on_role_change(self, status: RoleStatus) -> None:
        logger.debug(f"Internal console access: granted={status.is_granted}")
        for observer in list(self._observers):
            observer.set_options(enabled=status.is_granted)

    def _config_saved(self, flags: FeatureFlags, submitted: FeatureFlags, _: Any) -> None:
        self._client.set_query_data(keys.INTERNAL_CONFIG, flags)
        self.flag_editor.mark_saved(flags)
        self._notifier.success(
            "Configuration Saved", "Feature flags have been updated successfully."
        )

    def _config_failed(self, error: Exception, submitted: FeatureFlags, _: Any) -> None:
        message = error.message if isinstance(error, AppError) else str(error)
        self._notifier.error("Failed to save configuration", message)
