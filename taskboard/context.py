"""
Explicit per-request context handed to every workflow call.
"""
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from taskboard.errors import AuthenticationError
from taskboard.identity import UserIdentity
from taskboard.models import User
from taskboard.notifier import NotificationOutbox
from taskboard.user_store import require_admin


@dataclass
class WorkflowContext:
    db: Session
    identity: Optional[UserIdentity]
    outbox: NotificationOutbox = field(default_factory=NotificationOutbox)

    @property
    def user_id(self) -> str:
        return self.require_identity().id

    def require_identity(self) -> UserIdentity:
        if self.identity is None:
            raise AuthenticationError("You must be signed in")
        return self.identity

    def require_admin(self) -> User:
        """Admin check against the users table, not the cached identity."""
        return require_admin(self.db, self.require_identity().id)
