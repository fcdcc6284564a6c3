"""External collaborator protocols and in-memory stand-ins."""

from tradejournal.providers.auth_provider import (
    AuthEvent,
    AuthProvider,
    AuthStateListener,
    FOUNDER_ROLE,
    Navigator,
    RoleProvider,
)
from tradejournal.providers.stub_provider import (
    InMemoryAuthProvider,
    InMemoryRoleProvider,
    RecordingNavigator,
)

__all__ = [
    "AuthEvent",
    "AuthProvider",
    "AuthStateListener",
    "FOUNDER_ROLE",
    "Navigator",
    "RoleProvider",
    "InMemoryAuthProvider",
    "InMemoryRoleProvider",
    "RecordingNavigator",
]
