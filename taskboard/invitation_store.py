"""
Invitation persistence.

One row per email address: a pending invitation is refreshed in place when
re-sent, an accepted one can never be re-sent, and revocation deletes the row.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from taskboard.db import write_transaction
from taskboard.errors import AlreadyAcceptedError, NotFoundError, ValidationError
from taskboard.logger import get_logger
from taskboard.models import Invitation, InvitationStatus, Role, utcnow
from taskboard.user_store import find_user, find_user_by_email, normalize_email

logger = get_logger(__name__)


def find_invitation(db: Session, email: str) -> Optional[Invitation]:
    return db.query(Invitation).filter(Invitation.email == normalize_email(email)).first()


def find_pending(db: Session, email: str) -> Optional[Invitation]:
    return (
        db.query(Invitation)
        .filter(
            Invitation.email == normalize_email(email),
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .first()
    )


def invite(db: Session, email: str, inviter_id: str, role: Optional[Role] = None) -> Invitation:
    """
    Create or refresh the pending invitation for ``email``.

    An existing pending invitation keeps its role unless ``role`` is given.

    Raises:
        AlreadyAcceptedError: the email already accepted an invitation
        ValidationError: bad email or role, or the email already has an account
        NotFoundError: unknown inviter
    """
    email = normalize_email(email)
    if role is not None:
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError(f"Invalid role: {role}")
    if not find_user(db, inviter_id):
        raise NotFoundError(f"Inviter {inviter_id} not found")

    existing = find_invitation(db, email)

    if existing and existing.status == InvitationStatus.ACCEPTED.value:
        raise AlreadyAcceptedError(
            "This user has already accepted an invitation and may already have an account."
        )
    if find_user_by_email(db, email):
        raise ValidationError("A user with this email already exists")

    with write_transaction(db):
        if existing:
            existing.invited_by = inviter_id
            existing.created_at = utcnow()
            if role is not None:
                existing.role = role.value
            invitation = existing
        else:
            invitation = Invitation(
                email=email,
                invited_by=inviter_id,
                role=(role or Role.EMPLOYEE).value,
                status=InvitationStatus.PENDING.value,
            )
            db.add(invitation)
    db.refresh(invitation)

    action = "refreshed" if existing else "created"
    logger.info(f"Invitation {action} for {email} (role={invitation.role})")
    return invitation


def revoke(db: Session, invitation_id: str) -> None:
    """Hard-delete an invitation."""
    invitation = db.get(Invitation, invitation_id) if invitation_id else None
    if not invitation:
        raise NotFoundError(f"Invitation {invitation_id} not found")
    email = invitation.email
    with write_transaction(db):
        db.delete(invitation)
    logger.info(f"Invitation for {email} revoked")


def accept(db: Session, email: str, new_user_id: str) -> Optional[Invitation]:
    """
    Mark the pending invitation for ``email`` as accepted.

    Returns None when there is no pending invitation; self-signup without an
    invitation is allowed.
    """
    invitation = find_pending(db, email)
    if not invitation:
        logger.debug(f"No pending invitation for {email}")
        return None

    with write_transaction(db):
        invitation.status = InvitationStatus.ACCEPTED.value
        invitation.accepted_user_id = new_user_id
    logger.info(f"Invitation for {invitation.email} accepted by {new_user_id}")
    return invitation


def list_pending_invitations(db: Session) -> List[Invitation]:
    return (
        db.query(Invitation)
        .filter(Invitation.status == InvitationStatus.PENDING.value)
        .order_by(Invitation.created_at.desc())
        .all()
    )
