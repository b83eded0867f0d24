from fastapi import APIRouter, Depends

from api.deps import get_context
from schemas.auth import UserResponse
from schemas.dashboard import (
    AdminDashboardResponse,
    EmailCheckRequest,
    EmailCheckResponse,
    EmployeeDashboardResponse,
)
from schemas.tasks import TaskResponse
from taskboard import admin_workflow, employee_workflow
from taskboard.context import WorkflowContext

router = APIRouter(prefix="/api", tags=["Dashboard"])


@router.get("/dashboard/employee", response_model=EmployeeDashboardResponse)
def employee_dashboard(ctx: WorkflowContext = Depends(get_context)):
    stats = employee_workflow.employee_dashboard(ctx)
    stats["recent_tasks"] = [TaskResponse(**t.to_dict()) for t in stats["recent_tasks"]]
    return EmployeeDashboardResponse(**stats)


@router.get("/dashboard/admin", response_model=AdminDashboardResponse)
def admin_dashboard(ctx: WorkflowContext = Depends(get_context)):
    stats = admin_workflow.admin_dashboard(ctx)
    stats["recent_users"] = [UserResponse(**u.to_dict()) for u in stats["recent_users"]]
    return AdminDashboardResponse(**stats)


@router.post("/admin/test-email", response_model=EmailCheckResponse)
def send_test_email(body: EmailCheckRequest, ctx: WorkflowContext = Depends(get_context)):
    """Send a test email synchronously to check the provider configuration (admin)."""
    result = admin_workflow.send_test_email(ctx, body.email)
    return EmailCheckResponse(success=result.success, error=result.error)
