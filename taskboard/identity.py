"""
Identity resolution: session token -> user identity.

The resolver only learns *which* user a token belongs to. Role, email and
display name are always read from the users table, so a token can never
carry an elevated role. Any failure resolves to None.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional

from sqlalchemy.orm import Session

from auth.jwt_handler import create_access_token, decode_access_token, seconds_until_expiry
from taskboard.config import settings
from taskboard.logger import get_logger
from taskboard.models import Role, User, UserStatus

logger = get_logger(__name__)


@dataclass(frozen=True)
class UserIdentity:
    id: str
    email: str
    display_name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "UserIdentity":
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.full_name,
            role=Role(user.role),
        )


class IdentityResolver(ABC):
    """Maps a session token to a user id; role lookup is shared."""

    @abstractmethod
    def session_subject(self, session_token: str) -> Optional[str]:
        """User id the token belongs to, or None if the token is not live."""

    def refresh(self, session_token: str) -> Optional[str]:
        """Rotated token to hand back to the client, or None to keep the current one."""
        return None

    def resolve(self, db: Session, session_token: Optional[str]) -> Optional[UserIdentity]:
        if not session_token:
            return None
        try:
            user_id = self.session_subject(session_token)
            if not user_id:
                return None
            user = db.get(User, user_id)
            if not user or user.status != UserStatus.ACTIVE.value:
                return None
            return UserIdentity.from_user(user)
        except Exception as e:
            logger.error(f"Identity resolution failed, treating as unauthenticated: {e}")
            return None


class TokenIdentityResolver(IdentityResolver):
    """Resolver for signed session tokens issued at login."""

    def __init__(self, refresh_window_minutes: Optional[int] = None):
        self.refresh_window_seconds = 60 * (
            refresh_window_minutes
            if refresh_window_minutes is not None
            else settings.session_refresh_window_minutes
        )

    def session_subject(self, session_token: str) -> Optional[str]:
        payload = decode_access_token(session_token)
        if not payload:
            return None
        return payload.get("sub")

    def refresh(self, session_token: str) -> Optional[str]:
        payload = decode_access_token(session_token)
        if not payload or not payload.get("sub"):
            return None
        if seconds_until_expiry(payload) > self.refresh_window_seconds:
            return None
        logger.debug(f"Rotating session token for {payload['sub']}")
        return create_access_token({"sub": payload["sub"]})


class FixtureIdentityResolver(IdentityResolver):
    """Resolver over a static token -> user id map, for development and tests."""

    def __init__(self, sessions: Dict[str, str]):
        self.sessions = dict(sessions)

    def session_subject(self, session_token: str) -> Optional[str]:
        return self.sessions.get(session_token)


def build_identity_resolver(backend: str, fixture_sessions: Optional[Dict[str, str]] = None) -> IdentityResolver:
    if backend == "token":
        return TokenIdentityResolver()
    if backend == "fixture":
        logger.warning("Using fixture identity backend; do not enable in production")
        return FixtureIdentityResolver(fixture_sessions or {})
    raise ValueError(f"Unknown auth backend: {backend}")


@lru_cache()
def get_identity_resolver() -> IdentityResolver:
    """Resolver selected by settings.auth_backend, built once at startup."""
    return build_identity_resolver(settings.auth_backend, settings.fixture_sessions)
