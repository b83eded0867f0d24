from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from api.deps import get_current_identity, get_outbox, require_provisioning_key
from schemas.auth import (
    EmailRequest,
    InvitedUserCreate,
    PasswordUpdate,
    ProfileUpdate,
    ProvisioningResponse,
    Token,
    TokenRequest,
    UserCreate,
    UserResponse,
)
from taskboard import accounts, user_store
from taskboard.db import get_db
from taskboard.errors import TaskboardError
from taskboard.identity import UserIdentity
from taskboard.logger import get_logger
from taskboard.notifier import NotificationOutbox

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", response_model=UserResponse, status_code=201)
def signup(
    user: UserCreate,
    db: Session = Depends(get_db),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    """Self-signup. Accounts without a pending invitation must confirm their email."""
    try:
        new_user = accounts.register(
            db,
            outbox,
            email=user.email,
            password=user.password,
            full_name=user.full_name,
        )
        return UserResponse(**new_user.to_dict())
    except TaskboardError:
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {str(e)}")


@router.post("/token", response_model=Token)
def login(
    form: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """OAuth2 password login; ``username`` is the account email."""
    user = accounts.authenticate(db, form.username, form.password)
    return {
        "access_token": accounts.issue_session_token(user),
        "token_type": "bearer",
        "user_id": user.id,
        "full_name": user.full_name,
        "role": user.role,
    }


@router.get("/me", response_model=UserResponse)
def get_current_user(
    identity: UserIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Current user, read fresh from the users table."""
    user = user_store.get_user(db, identity.id)
    return UserResponse(**user.to_dict())


@router.patch("/me", response_model=UserResponse)
def update_profile(
    body: ProfileUpdate,
    identity: UserIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Update the current user's display name and profile image."""
    user = user_store.update_profile(db, identity.id, **body.model_dump(exclude_unset=True))
    return UserResponse(**user.to_dict())


@router.post("/verify", response_model=UserResponse)
def verify_email(
    body: TokenRequest,
    db: Session = Depends(get_db),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    """Confirm an email address; a pending invitation is applied here."""
    user = accounts.confirm_email(db, outbox, body.token)
    return UserResponse(**user.to_dict())


@router.post("/resend-confirmation")
def resend_confirmation(
    body: EmailRequest,
    db: Session = Depends(get_db),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    accounts.resend_confirmation(db, outbox, body.email)
    return {"message": "If the account needs confirmation, a new email has been sent."}


@router.post("/password-reset")
def request_password_reset(
    body: EmailRequest,
    db: Session = Depends(get_db),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    accounts.request_password_reset(db, outbox, body.email)
    return {"message": "If an account exists for this email, a reset link has been sent."}


@router.post("/update-password")
def update_password(body: PasswordUpdate, db: Session = Depends(get_db)):
    accounts.reset_password(db, body.token, body.password)
    return {"message": "Password updated successfully"}


@router.post(
    "/signup-invited",
    response_model=ProvisioningResponse,
    dependencies=[Depends(require_provisioning_key)],
)
def signup_invited(
    user: InvitedUserCreate,
    db: Session = Depends(get_db),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    """Backend-privileged: create a pre-confirmed account for an invited user."""
    try:
        new_user = accounts.signup_invited(
            db,
            outbox,
            email=user.email,
            password=user.password,
            full_name=user.full_name,
            role=user.role,
        )
    except TaskboardError as e:
        logger.error(f"Invited signup failed: {e.message}")
        status = 400 if e.status_code < 500 else e.status_code
        return JSONResponse(status_code=status, content={"error": e.message})
    except Exception as e:
        db.rollback()
        logger.exception("Invited signup error")
        return JSONResponse(status_code=500, content={"error": str(e) or "An unexpected error occurred"})

    return {
        "success": True,
        "message": "Account created successfully! Please use the login page to sign in.",
        "user": UserResponse(**new_user.to_dict()),
    }
