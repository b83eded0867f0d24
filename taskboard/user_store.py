"""
User account persistence. The users table is the only source of truth for roles.
"""
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth.security import hash_password
from taskboard.db import write_transaction
from taskboard.errors import AuthorizationError, NotFoundError, ValidationError
from taskboard.logger import get_logger
from taskboard.models import Role, User, UserStatus

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: Optional[str]) -> str:
    value = (email or "").strip().lower()
    if not value or "@" not in value:
        raise ValidationError("A valid email address is required")
    return value


def _validate_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return password


def _validate_full_name(full_name: Optional[str]) -> str:
    value = (full_name or "").strip()
    if not value:
        raise ValidationError("Full name is required")
    return value


def find_user(db: Session, user_id: Optional[str]) -> Optional[User]:
    if not user_id:
        return None
    return db.get(User, user_id)


def get_user(db: Session, user_id: str) -> User:
    user = find_user(db, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def create_user(
    db: Session,
    *,
    email: str,
    password: str,
    full_name: str,
    role: Role = Role.EMPLOYEE,
    status: UserStatus = UserStatus.ACTIVE,
    avatar_url: Optional[str] = None,
) -> User:
    """
    Create a user account with a hashed password.

    Raises:
        ValidationError: missing fields, short password or email already registered
    """
    email = normalize_email(email)
    full_name = _validate_full_name(full_name)
    _validate_password(password)

    if find_user_by_email(db, email):
        raise ValidationError("User already exists")

    user = User(
        email=email,
        full_name=full_name,
        role=Role(role).value,
        status=UserStatus(status).value,
        avatar_url=avatar_url,
        password_hash=hash_password(password),
    )
    with write_transaction(db):
        db.add(user)
    db.refresh(user)

    logger.info(f"Created user {user.email} (role={user.role}, status={user.status})")
    return user


def update_profile(
    db: Session,
    user_id: str,
    full_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> User:
    """
    Change the display name and/or profile image reference.
    None leaves a field as it is; an empty avatar_url removes the image.
    """
    user = get_user(db, user_id)
    if full_name is not None:
        full_name = _validate_full_name(full_name)
    with write_transaction(db):
        if full_name is not None:
            user.full_name = full_name
        if avatar_url is not None:
            user.avatar_url = avatar_url.strip() or None
    logger.info(f"Profile updated for {user.email}")
    return user


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc()).all()


def update_role(db: Session, user_id: str, role: Role) -> User:
    user = get_user(db, user_id)
    with write_transaction(db):
        user.role = Role(role).value
    logger.info(f"User {user.email} role set to {user.role}")
    return user


def activate_user(db: Session, user_id: str) -> User:
    user = get_user(db, user_id)
    if user.status != UserStatus.ACTIVE.value:
        with write_transaction(db):
            user.status = UserStatus.ACTIVE.value
        logger.info(f"User {user.email} activated")
    return user


def set_password(db: Session, user_id: str, new_password: str) -> User:
    user = get_user(db, user_id)
    _validate_password(new_password)
    with write_transaction(db):
        user.password_hash = hash_password(new_password)
    logger.info(f"Password updated for {user.email}")
    return user


def require_admin(db: Session, user_id: Optional[str]) -> User:
    """
    Load the acting user and check the durable role.
    Any lookup failure denies access.
    """
    try:
        user = find_user(db, user_id)
    except SQLAlchemyError as e:
        logger.error(f"Role lookup failed for {user_id}: {e}")
        raise AuthorizationError("Unable to verify permissions") from e

    if not user or not user.is_admin:
        raise AuthorizationError("Administrator role required")
    return user
