from fastapi import APIRouter

from taskboard.db import check_db_connection
from taskboard.email_client import get_email_client

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check():
    """Check health of the database and the email provider configuration."""
    services = {
        "database": check_db_connection(),
        "email": get_email_client().is_configured,
    }
    return {
        "status": "healthy" if services["database"] else "degraded",
        "services": services,
    }
