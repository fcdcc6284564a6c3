"""Authentication session domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from tradejournal.core.timezone import now_utc


@dataclass(frozen=True)
class User:
    """Authenticated user identity."""

    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class Session:
    """Bearer-token session issued by the auth provider."""

    user_id: str
    token: str
    expires_at: Optional[datetime] = field(default=None)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Return True once the session is past its expiry."""
        if self.expires_at is None:
            return False
        return (now or now_utc()) >= self.expires_at


@dataclass(frozen=True)
class AuthState:
    """Current user and session, both None when signed out."""

    user: Optional[User] = None
    session: Optional[Session] = None

    @classmethod
    def signed_out(cls) -> "AuthState":
        return cls(user=None, session=None)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.session is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None
