from fastapi import APIRouter, Depends

from tradejournal.api.schemas import FeatureFlagsSchema
from tradejournal.stub_backend.deps import check_failure, get_store, require_founder
from tradejournal.stub_backend.store import BILLING_METRICS, LOG_DATA, SYSTEM_METRICS, StubStore

# Every route here is founder-only
router = APIRouter(
    prefix="/internal",
    tags=["internal"],
    dependencies=[Depends(require_founder)],
)


@router.get("/users")
def users(store: StubStore = Depends(get_store)):
    check_failure(store, "internal_users")
    return store.user_rows()


@router.get("/metrics")
def overview_metrics(store: StubStore = Depends(get_store)):
    check_failure(store, "internal_metrics")
    return store.overview()


@router.get("/analytics")
def internal_analytics(store: StubStore = Depends(get_store)):
    check_failure(store, "internal_analytics")
    return store.internal_analytics()


@router.get("/billing")
def billing(store: StubStore = Depends(get_store)):
    check_failure(store, "internal_billing")
    return BILLING_METRICS


@router.get("/sessions")
def sessions(store: StubStore = Depends(get_store)):
    """Every chat with its owner's email and message count, in one response."""
    check_failure(store, "internal_sessions")
    return store.sessions()


@router.get("/system")
def system_metrics(store: StubStore = Depends(get_store)):
    check_failure(store, "internal_system")
    return SYSTEM_METRICS


@router.get("/logs")
def logs(store: StubStore = Depends(get_store)):
    check_failure(store, "internal_logs")
    return LOG_DATA


@router.get("/config")
def get_config(store: StubStore = Depends(get_store)):
    check_failure(store, "internal_config")
    return FeatureFlagsSchema.from_domain(store.flags).to_payload()


@router.put("/config")
def save_config(data: FeatureFlagsSchema, store: StubStore = Depends(get_store)):
    check_failure(store, "save_config")
    store.flags = data.to_domain()
    return FeatureFlagsSchema.from_domain(store.flags).to_payload()
