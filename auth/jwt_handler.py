import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from taskboard.config import settings

SESSION_TOKEN = "session"
EMAIL_CONFIRMATION_TOKEN = "email_confirmation"
PASSWORD_RESET_TOKEN = "password_reset"


def create_access_token(data: dict, expires_minutes: Optional[int] = None, token_type: str = SESSION_TOKEN):
    payload = data.copy()
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload.update({"exp": expire, "type": token_type, "jti": uuid.uuid4().hex})
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, token_type: str = SESSION_TOKEN) -> Optional[dict]:
    """Return the payload of a valid, unexpired token of the given type, else None."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


def seconds_until_expiry(payload: dict) -> float:
    exp = payload.get("exp")
    if exp is None:
        return 0.0
    return exp - datetime.now(timezone.utc).timestamp()
