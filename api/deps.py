"""
Shared FastAPI dependencies: database session, identity, notification outbox
and the per-request workflow context.
"""
from typing import Optional

from fastapi import BackgroundTasks, Depends, Header, Response
from sqlalchemy.orm import Session

from auth.oauth2 import oauth2_scheme
from taskboard.config import settings
from taskboard.context import WorkflowContext
from taskboard.db import get_db
from taskboard.errors import AuthenticationError, AuthorizationError
from taskboard.identity import IdentityResolver, UserIdentity, get_identity_resolver
from taskboard.notifier import NotificationOutbox

SESSION_HEADER = "X-Session-Token"


def get_resolver() -> IdentityResolver:
    return get_identity_resolver()


def get_outbox(background_tasks: BackgroundTasks) -> NotificationOutbox:
    """Outbox for this request, flushed once the response has been sent."""
    outbox = NotificationOutbox()
    background_tasks.add_task(outbox.flush)
    return outbox


def get_current_identity(
    response: Response,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    resolver: IdentityResolver = Depends(get_resolver),
) -> UserIdentity:
    identity = resolver.resolve(db, token)
    if identity is None:
        raise AuthenticationError("Not authenticated")

    refreshed = resolver.refresh(token)
    if refreshed:
        response.headers[SESSION_HEADER] = refreshed
    return identity


def get_context(
    db: Session = Depends(get_db),
    identity: UserIdentity = Depends(get_current_identity),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> WorkflowContext:
    return WorkflowContext(db=db, identity=identity, outbox=outbox)


def require_provisioning_key(x_provisioning_key: Optional[str] = Header(default=None)) -> None:
    """Guard for backend-privileged provisioning endpoints when a key is configured."""
    if settings.provisioning_key and x_provisioning_key != settings.provisioning_key:
        raise AuthorizationError("Provisioning key required")
