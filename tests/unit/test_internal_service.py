"""
Unit tests for the internal console.

Tests cover:
- No internal requests while the role is loading or denied
- Panels loading once the founder role is granted
- Access revoked on sign-out
- Feature flag editing and saving
- User search and activity counts
"""

from datetime import timedelta

import pytest

from tradejournal.cache import keys
from tradejournal.core.exceptions import AppError, AuthorizationDeniedError
from tradejournal.core.timezone import now_utc
from tradejournal.domain.models import UserData
from tradejournal.services import (
    InternalConsoleService,
    Notifier,
    count_active_users,
    search_users,
)

from tests.conftest import FakeInternalAPI, settle


async def sign_in_and_resolve(role_gate, auth_provider, role_provider, query_client, founder=True):
    auth_provider.sign_in("user-1", token="tok")
    if founder:
        role_provider.grant("user-1", "founder")
    role_gate.start()
    await settle(query_client)
    await role_gate.wait_resolved()
    await settle(query_client)


def observe_every_panel(service: InternalConsoleService) -> list:
    return [
        service.observe_users(),
        service.observe_overview(),
        service.observe_analytics(),
        service.observe_billing(),
        service.observe_sessions(),
        service.observe_system(),
        service.observe_logs(),
        service.observe_config(),
    ]


# =============================================================================
# ROLE GATING TESTS
# =============================================================================


class TestRoleGating:
    """Tests ensuring internal data is only requested for founders."""

    @pytest.mark.asyncio
    async def test_nothing_requested_while_role_is_loading(
        self,
        internal_service: InternalConsoleService,
        internal_api: FakeInternalAPI,
        query_client,
    ):
        """
        GIVEN a role gate that has not resolved
        WHEN every panel is mounted and focus is regained
        THEN no internal endpoint is called and every panel shows loading
        """
        panels = observe_every_panel(internal_service)
        query_client.on_focus()
        await settle(query_client)

        assert internal_api.total_calls == 0
        assert all(internal_service.panel(p).is_loading for p in panels)

    @pytest.mark.asyncio
    async def test_nothing_requested_when_denied(
        self,
        internal_service: InternalConsoleService,
        internal_api: FakeInternalAPI,
        role_gate,
        auth_provider,
        role_provider,
        query_client,
    ):
        """
        GIVEN a signed-in user without the founder role
        WHEN panels are mounted, invalidated and focus is regained
        THEN no internal endpoint is ever called and panels show access denied
        """
        await sign_in_and_resolve(role_gate, auth_provider, role_provider, query_client, founder=False)
        panels = observe_every_panel(internal_service)

        internal_service.refresh_all()
        query_client.on_focus()
        await settle(query_client)

        assert internal_api.total_calls == 0
        assert all(internal_service.panel(p).access_denied for p in panels)
        assert not any(internal_service.panel(p).is_error for p in panels)

    @pytest.mark.asyncio
    async def test_panels_load_once_granted(
        self,
        internal_service: InternalConsoleService,
        internal_api: FakeInternalAPI,
        role_gate,
        auth_provider,
        role_provider,
        query_client,
    ):
        """
        GIVEN billing and overview panels mounted while the role loads
        WHEN the founder role is granted
        THEN both panels fetch and show their data
        """
        billing = internal_service.observe_billing()
        overview = internal_service.observe_overview()

        await sign_in_and_resolve(role_gate, auth_provider, role_provider, query_client)

        state = internal_service.panel(billing)
        assert state.data.monthly_revenue == 42580
        assert state.data.paid_users == 32
        assert not state.access_denied
        assert internal_service.panel(overview).data.total_trades == 3
        assert internal_api.calls["billing"] == 1

    @pytest.mark.asyncio
    async def test_panel_stale_times(self, internal_service, role_gate, auth_provider, role_provider, query_client):
        await sign_in_and_resolve(role_gate, auth_provider, role_provider, query_client)

        internal_service.observe_billing()
        internal_service.observe_users()
        await query_client.wait_idle()

        assert query_client.get_entry(keys.INTERNAL_BILLING).stale_after == 300.0
        assert query_client.get_entry(keys.INTERNAL_USERS).stale_after == 60.0

    @pytest.mark.asyncio
    async def test_server_denial_is_not_an_error(
        self,
        internal_service: InternalConsoleService,
        internal_api: FakeInternalAPI,
        role_gate,
        auth_provider,
        role_provider,
        query_client,
    ):
        """
        GIVEN a granted gate but a server that answers 403
        WHEN the users panel loads
        THEN the panel shows access denied rather than an error
        """

        async def forbidden():
            raise AuthorizationDeniedError()

        internal_api.get_users = forbidden
        await sign_in_and_resolve(role_gate, auth_provider, role_provider, query_client)
        users = internal_service.observe_users()
        await query_client.wait_idle()

        state = internal_service.panel(users)
        assert state.access_denied

    @pytest.mark.asyncio
    async def test_sign_out_disables_panels(
        self,
        internal_service: InternalConsoleService,
        internal_api: FakeInternalAPI,
        session_provider,
        role_gate,
        auth_provider,
        role_provider,
        query_client,
    ):
        """
        GIVEN a founder viewing the billing panel
        WHEN the founder signs out
        THEN the panel drops its data and no further internal request is made
        """
        session_provider.start()
        billing = internal_service.observe_billing()
        await sign_in_and_resolve(role_gate, auth_provider, role_provider, query_client)
        calls_before = internal_api.total_calls

        await session_provider.sign_out()
        query_client.on_focus()
        await settle(query_client)
        await role_gate.wait_resolved()

        assert internal_service.panel(billing).data is None
        assert internal_service.panel(billing).access_denied
        assert internal_api.total_calls == calls_before


# =============================================================================
# FEATURE FLAG TESTS
# =============================================================================


class TestFeatureFlags:
    """Tests for editing and saving feature flags."""

    @pytest.mark.asyncio
    async def test_local_edits_survive_refetch(
        self,
        internal_service: InternalConsoleService,
        role_gate,
        auth_provider,
        role_provider,
        query_client,
    ):
        """
        GIVEN loaded flags with a local toggle
        WHEN the config is refetched
        THEN the local edit is kept
        """
        await sign_in_and_resolve(role_gate, auth_provider, role_provider, query_client)
        internal_service.observe_config()
        await query_client.wait_idle()

        internal_service.toggle_flag("pattern_recognition")
        internal_service.refresh_all()
        await query_client.wait_idle()

        assert internal_service.flag_editor.flags.pattern_recognition is True
        assert internal_service.flag_editor.is_dirty

    @pytest.mark.asyncio
    async def test_save_config(
        self,
        internal_service: InternalConsoleService,
        internal_api: FakeInternalAPI,
        notifier: Notifier,
        role_gate,
        auth_provider,
        role_provider,
        query_client,
    ):
        """
        GIVEN a toggled flag
        WHEN the config is saved
        THEN the server has the new flags, the cache shows them and the
        editor is clean
        """
        await sign_in_and_resolve(role_gate, auth_provider, role_provider, query_client)
        internal_service.observe_config()
        await query_client.wait_idle()
        internal_service.toggle_flag("mobile_app")

        state = await internal_service.save_config()

        assert state.is_success
        assert internal_api.flags.mobile_app is True
        assert query_client.get_query_data(keys.INTERNAL_CONFIG).mobile_app is True
        assert not internal_service.flag_editor.is_dirty
        assert notifier.active[-1].title == "Configuration Saved"

    @pytest.mark.asyncio
    async def test_save_before_load_is_an_error(self, internal_service, internal_api):
        state = await internal_service.save_config()

        assert state.is_error
        assert state.error.code == "CONFIG_NOT_LOADED"
        assert internal_api.calls["save_config"] == 0

    def test_toggle_before_load_raises(self, internal_service):
        with pytest.raises(AppError):
            internal_service.toggle_flag("mobile_app")

    def test_reset_drops_edits_and_allows_reseed(self, internal_service):
        """
        GIVEN a seeded editor with an unsaved toggle
        WHEN the service is reset
        THEN the editor is empty and the next load seeds it again
        """
        flags = FakeInternalAPI().flags
        internal_service.flag_editor.seed(flags)
        internal_service.toggle_flag("mobile_app")

        internal_service.reset()

        assert internal_service.flag_editor.flags is None
        assert not internal_service.flag_editor.is_dirty
        internal_service.flag_editor.seed(flags)
        assert internal_service.flag_editor.flags == flags

    def test_unknown_flag_is_rejected(self, internal_service):
        internal_service.flag_editor.seed(FakeInternalAPI().flags)

        with pytest.raises(KeyError):
            internal_service.toggle_flag("time_travel")


# =============================================================================
# USER TABLE TESTS
# =============================================================================


class TestUserHelpers:
    """Tests for search_users and count_active_users."""

    @pytest.fixture
    def users(self):
        now = now_utc()
        return [
            UserData(
                id="1",
                pseudonymous_id="anon-ab12cd",
                consent_given=True,
                created_at=now - timedelta(days=30),
                updated_at=now - timedelta(days=1),
            ),
            UserData(
                id="2",
                pseudonymous_id="anon-ff99ee",
                consent_given=False,
                created_at=now - timedelta(days=30),
                updated_at=now - timedelta(days=10),
            ),
        ]

    def test_search_is_case_insensitive(self, users):
        assert [u.id for u in search_users(users, "AB12")] == ["1"]

    def test_active_means_updated_within_a_week(self, users):
        assert count_active_users(users) == 1
