"""Internal-console endpoints. The server enforces the founder role on each."""

from tradejournal.api.client import ApiClient
from tradejournal.api.schemas import (
    BillingMetricsResponse,
    ChatSessionResponse,
    FeatureFlagsSchema,
    InternalAnalyticsResponse,
    LogDataResponse,
    OverviewMetricsResponse,
    SystemMetricsResponse,
    UserDataResponse,
)
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


class InternalAPI:
    """Typed calls for /internal/*."""

    def __init__(self, client: ApiClient):
        self._client = client

    async def get_users(self) -> list[UserData]:
        rows = await self._client.request_list("GET", "/internal/users", UserDataResponse)
        return [row.to_domain() for row in rows]

    async def get_overview_metrics(self) -> OverviewMetrics:
        response = await self._client.request_model(
            "GET", "/internal/metrics", OverviewMetricsResponse
        )
        return response.to_domain()

    async def get_analytics(self) -> InternalAnalytics:
        response = await self._client.request_model(
            "GET", "/internal/analytics", InternalAnalyticsResponse
        )
        return response.to_domain()

    async def get_billing_metrics(self) -> BillingMetrics:
        response = await self._client.request_model(
            "GET", "/internal/billing", BillingMetricsResponse
        )
        return response.to_domain()

    async def get_sessions(self) -> list[ChatSessionSummary]:
        """Chat sessions with owner email and message count, aggregated server-side."""
        rows = await self._client.request_list(
            "GET", "/internal/sessions", ChatSessionResponse
        )
        return [row.to_domain() for row in rows]

    async def get_system_metrics(self) -> SystemMetrics:
        response = await self._client.request_model(
            "GET", "/internal/system", SystemMetricsResponse
        )
        return response.to_domain()

    async def get_logs(self) -> LogData:
        response = await self._client.request_model("GET", "/internal/logs", LogDataResponse)
        return response.to_domain()

    async def get_config(self) -> FeatureFlags:
        response = await self._client.request_model(
            "GET", "/internal/config", FeatureFlagsSchema
        )
        return response.to_domain()

    async def save_config(self, flags: FeatureFlags) -> FeatureFlags:
        body = FeatureFlagsSchema.from_domain(flags)
        response = await self._client.request_model(
            "PUT", "/internal/config", FeatureFlagsSchema, json=body.to_payload()
        )
        return response.to_domain()
