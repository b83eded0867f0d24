from fastapi import APIRouter, Depends

from api.deps import get_context
from schemas.auth import UserResponse
from schemas.users import RoleUpdate, UserListResponse
from taskboard import admin_workflow
from taskboard.context import WorkflowContext

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=UserListResponse)
def list_users(ctx: WorkflowContext = Depends(get_context)):
    """All user accounts (admin)."""
    users = admin_workflow.list_users(ctx)
    return UserListResponse(users=[UserResponse(**u.to_dict()) for u in users], total=len(users))


@router.patch("/{user_id}/role", response_model=UserResponse)
def change_role(user_id: str, body: RoleUpdate, ctx: WorkflowContext = Depends(get_context)):
    """Promote or demote a user (admin)."""
    user = admin_workflow.change_user_role(ctx, user_id, body.role)
    return UserResponse(**user.to_dict())
