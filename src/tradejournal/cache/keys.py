"""Query keys. A key is a tuple of entity type plus identifying parameters."""

from typing import Hashable

QueryKey = tuple[Hashable, ...]

AUTH_SESSION: QueryKey = ("auth-session",)
CHATS: QueryKey = ("chats",)
TRADES: QueryKey = ("trades",)
ANALYTICS: QueryKey = ("analytics",)
INTERNAL: QueryKey = ("internal",)

INTERNAL_USERS: QueryKey = ("internal", "users")
INTERNAL_OVERVIEW: QueryKey = ("internal", "overview-metrics")
INTERNAL_ANALYTICS: QueryKey = ("internal", "analytics")
INTERNAL_BILLING: QueryKey = ("internal", "billing")
INTERNAL_SESSIONS: QueryKey = ("internal", "sessions")
INTERNAL_SYSTEM: QueryKey = ("internal", "system-metrics")
INTERNAL_LOGS: QueryKey = ("internal", "logs")
INTERNAL_CONFIG: QueryKey = ("internal", "config")


def chat(chat_id: str) -> QueryKey:
    """Key of a single chat thread."""
    return ("chat", chat_id)


def user_role(user_id: str) -> QueryKey:
    """Key of the founder-role lookup for one user."""
    return ("user-role", user_id)


def matches(key: QueryKey, prefix: QueryKey) -> bool:
    """Return True if key starts with prefix (an empty prefix matches everything)."""
    return key[: len(prefix)] == prefix
