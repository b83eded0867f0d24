"""
Backend-privileged account provisioning outside the /auth prefix.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from api.deps import require_provisioning_key
from schemas.auth import ProvisioningResponse, UserCreate, UserResponse
from taskboard import accounts
from taskboard.db import get_db
from taskboard.errors import TaskboardError
from taskboard.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Provisioning"], dependencies=[Depends(require_provisioning_key)])


@router.post("/create-admin", response_model=ProvisioningResponse)
def create_admin(user: UserCreate, db: Session = Depends(get_db)):
    """Create an account and promote it to admin."""
    try:
        admin = accounts.create_admin(
            db,
            email=user.email,
            password=user.password,
            full_name=user.full_name,
        )
    except TaskboardError as e:
        logger.error(f"Admin creation failed: {e.message}")
        status = 400 if e.status_code < 500 else e.status_code
        return JSONResponse(status_code=status, content={"error": e.message})
    except Exception as e:
        db.rollback()
        logger.exception("Admin creation error")
        return JSONResponse(status_code=500, content={"error": str(e) or "Internal server error"})

    return {
        "success": True,
        "message": "Admin user created successfully. You can now sign in.",
        "user": UserResponse(**admin.to_dict()),
    }
