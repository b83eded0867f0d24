"""
Account lifecycle: signup, provisioning, login, email confirmation and
password reset.

A user's role is decided here and nowhere else: a pending invitation's role
wins, then the role an operator explicitly provisions. Self-signup yields an
employee, and a pending invitation is only applied once the email is confirmed.
"""
from typing import Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from auth.jwt_handler import (
    EMAIL_CONFIRMATION_TOKEN,
    PASSWORD_RESET_TOKEN,
    create_access_token,
    decode_access_token,
)
from auth.security import password_fingerprint, verify_password
from taskboard import invitation_store, user_store
from taskboard.config import settings
from taskboard.errors import AuthenticationError, ValidationError
from taskboard.logger import get_logger
from taskboard.models import Invitation, Role, User, UserStatus
from taskboard.notifier import NotificationKind, NotificationOutbox, Recipient, app_link

logger = get_logger(__name__)


def _queue_confirmation_email(outbox: NotificationOutbox, user: User) -> None:
    token = create_access_token(
        {"sub": user.id},
        expires_minutes=settings.email_token_expire_minutes,
        token_type=EMAIL_CONFIRMATION_TOKEN,
    )
    outbox.enqueue(
        NotificationKind.REGISTRATION_CONFIRMATION,
        Recipient(email=user.email, name=user.full_name),
        {"verification_link": app_link(f"/auth/verify?token={quote(token)}")},
    )


def _alert_inviter(db: Session, outbox: NotificationOutbox, invitation: Invitation, user: User) -> None:
    inviter = user_store.find_user(db, invitation.invited_by)
    if not inviter:
        return
    outbox.enqueue(
        NotificationKind.ADMIN_ALERT,
        Recipient(email=inviter.email, name="Admin"),
        {
            "alert_subject": "Invitation accepted",
            "alert_message": f"{user.full_name} ({user.email}) joined as {user.role}.",
        },
    )


def register(
    db: Session,
    outbox: NotificationOutbox,
    *,
    email: str,
    password: str,
    full_name: str,
) -> User:
    """
    Self-signup.

    The account is always an ``invited`` employee until the emailed
    confirmation link is used. A pending invitation for the address is only
    applied on confirmation, once ownership of the mailbox is proven.
    """
    user = user_store.create_user(
        db,
        email=email,
        password=password,
        full_name=full_name,
        role=Role.EMPLOYEE,
        status=UserStatus.INVITED,
    )
    _queue_confirmation_email(outbox, user)
    return user


def confirm_email(db: Session, outbox: NotificationOutbox, token: str) -> User:
    """
    Activate the account behind a confirmation link.

    A pending invitation for the address sets the role, is marked accepted
    and the inviter is alerted.
    """
    payload = decode_access_token(token, token_type=EMAIL_CONFIRMATION_TOKEN)
    if not payload or not payload.get("sub"):
        raise ValidationError("Confirmation link is invalid or has expired")
    user = user_store.activate_user(db, payload["sub"])

    invitation = invitation_store.find_pending(db, user.email)
    if invitation:
        if invitation.role != user.role:
            user = user_store.update_role(db, user.id, Role(invitation.role))
        invitation_store.accept(db, user.email, user.id)
        _alert_inviter(db, outbox, invitation, user)
    return user


def resend_confirmation(db: Session, outbox: NotificationOutbox, email: str) -> None:
    """Queue a fresh confirmation email for an unconfirmed account; silent otherwise."""
    user = user_store.find_user_by_email(db, email)
    if user and user.status == UserStatus.INVITED.value:
        _queue_confirmation_email(outbox, user)


def signup_invited(
    db: Session,
    outbox: NotificationOutbox,
    *,
    email: str,
    password: str,
    full_name: str,
    role: Optional[Role] = None,
) -> User:
    """
    Backend-privileged signup: the account is created already confirmed.
    A pending invitation's role overrides ``role``.
    """
    invitation = invitation_store.find_pending(db, email)
    if invitation:
        final_role = Role(invitation.role)
    else:
        try:
            final_role = Role(role) if role else Role.EMPLOYEE
        except ValueError:
            raise ValidationError(f"Invalid role: {role}")

    user = user_store.create_user(
        db,
        email=email,
        password=password,
        full_name=full_name,
        role=final_role,
        status=UserStatus.ACTIVE,
    )
    if invitation:
        invitation_store.accept(db, user.email, user.id)
        _alert_inviter(db, outbox, invitation, user)
    return user


def create_admin(db: Session, *, email: str, password: str, full_name: str) -> User:
    """Create a confirmed account, then promote it to admin."""
    user = user_store.create_user(
        db,
        email=email,
        password=password,
        full_name=full_name,
        role=Role.EMPLOYEE,
        status=UserStatus.ACTIVE,
    )
    return user_store.update_role(db, user.id, Role.ADMIN)


def authenticate(db: Session, email: str, password: str) -> User:
    try:
        user = user_store.find_user_by_email(db, email)
    except ValidationError:
        user = None
    if not user or not verify_password(password or "", user.password_hash):
        raise AuthenticationError("Invalid credentials")
    if user.status != UserStatus.ACTIVE.value:
        raise AuthenticationError("Email not confirmed")
    return user


def issue_session_token(user: User) -> str:
    return create_access_token({"sub": user.id})


def request_password_reset(db: Session, outbox: NotificationOutbox, email: str) -> None:
    """Queue a reset email when the account exists. Unknown emails are ignored silently."""
    user = user_store.find_user_by_email(db, email)
    if not user:
        logger.info("Password reset requested for unknown email")
        return
    token = create_access_token(
        {"sub": user.id, "pwd": password_fingerprint(user.password_hash)},
        expires_minutes=settings.password_reset_expire_minutes,
        token_type=PASSWORD_RESET_TOKEN,
    )
    outbox.enqueue(
        NotificationKind.PASSWORD_RESET,
        Recipient(email=user.email, name=user.full_name),
        {"reset_link": app_link(f"/auth/update-password?token={quote(token)}")},
    )


def reset_password(db: Session, token: str, new_password: str) -> User:
    """
    Set a new password from a reset link.

    The link is bound to the password it was issued for, so it stops working
    once any password change has gone through.
    """
    payload = decode_access_token(token, token_type=PASSWORD_RESET_TOKEN)
    if not payload or not payload.get("sub"):
        raise ValidationError("Reset link is invalid or has expired")
    user = user_store.get_user(db, payload["sub"])
    if payload.get("pwd") != password_fingerprint(user.password_hash):
        raise ValidationError("Reset link is no longer valid")
    return user_store.set_password(db, user.id, new_password)
