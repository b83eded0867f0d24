from datetime import date
from typing import List, Optional

from pydantic import BaseModel

from taskboard.models import Priority, TaskStatus


class TaskCreate(BaseModel):
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    deadline: Optional[date] = None
    assigned_to: Optional[str] = None


class TaskUpdate(BaseModel):
    """Partial admin edit; only fields sent by the client are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    deadline: Optional[date] = None
    assigned_to: Optional[str] = None


class StatusUpdate(BaseModel):
    status: TaskStatus


class CommentCreate(BaseModel):
    content: str


class TaskResponse(BaseModel):
    id: str
    title: str
    description: str
    status: TaskStatus
    priority: Priority
    deadline: Optional[str] = None
    assigned_to: Optional[str] = None
    assignee_name: Optional[str] = None
    assignee_email: Optional[str] = None
    created_by: str
    created_at: str
    updated_at: str


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]
    total: int


class CommentResponse(BaseModel):
    id: str
    task_id: str
    user_id: str
    author_name: Optional[str] = None
    content: str
    created_at: str
    updated_at: str


class TaskDetailResponse(BaseModel):
    task: TaskResponse
    comments: List[CommentResponse]
