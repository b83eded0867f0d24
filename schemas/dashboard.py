from typing import Dict, List, Optional

from pydantic import BaseModel

from schemas.auth import UserResponse
from schemas.tasks import TaskResponse


class EmployeeDashboardResponse(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    recent_tasks: List[TaskResponse]


class AdminDashboardResponse(BaseModel):
    total_users: int
    total_tasks: int
    active_tasks: int
    completed_today: int
    pending_invitations: int
    tasks_by_status: Dict[str, int]
    recent_users: List[UserResponse]


class EmailCheckRequest(BaseModel):
    email: str


class EmailCheckResponse(BaseModel):
    success: bool
    error: Optional[str] = None
