"""
Task endpoints for employees (own tasks) and admins (all tasks).
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_context
from schemas.tasks import (
    CommentCreate,
    CommentResponse,
    StatusUpdate,
    TaskCreate,
    TaskDetailResponse,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from taskboard import admin_workflow, employee_workflow
from taskboard.context import WorkflowContext

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


def _task_list(tasks) -> TaskListResponse:
    return TaskListResponse(
        tasks=[TaskResponse(**t.to_dict()) for t in tasks],
        total=len(tasks),
    )


def _task_detail(detail: dict) -> TaskDetailResponse:
    return TaskDetailResponse(
        task=TaskResponse(**detail["task"].to_dict()),
        comments=[CommentResponse(**c.to_dict()) for c in detail["comments"]],
    )


@router.get("/mine", response_model=TaskListResponse)
def list_my_tasks(
    status: Optional[str] = Query(None, description="not_picked, in_progress, completed or all"),
    search: Optional[str] = Query(None, description="Match in title or description"),
    ctx: WorkflowContext = Depends(get_context),
):
    """Tasks assigned to the current user, newest first."""
    return _task_list(employee_workflow.list_my_tasks(ctx, status=status, search=search))


@router.get("", response_model=TaskListResponse)
def list_all_tasks(ctx: WorkflowContext = Depends(get_context)):
    """All tasks (admin)."""
    return _task_list(admin_workflow.list_all_tasks(ctx))


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(body: TaskCreate, ctx: WorkflowContext = Depends(get_context)):
    """Create a task (admin). The assignee, if any, is emailed."""
    task = admin_workflow.create_task(
        ctx,
        title=body.title,
        description=body.description,
        priority=body.priority,
        deadline=body.deadline,
        assignee_id=body.assigned_to,
    )
    return TaskResponse(**task.to_dict())


@router.get("/{task_id}", response_model=TaskDetailResponse)
def get_task(task_id: str, ctx: WorkflowContext = Depends(get_context)):
    """Task with its comment thread; visible to the assignee and admins."""
    return _task_detail(employee_workflow.get_my_task(ctx, task_id))


@router.patch("/{task_id}", response_model=TaskResponse)
def edit_task(task_id: str, body: TaskUpdate, ctx: WorkflowContext = Depends(get_context)):
    """Edit any field of a task (admin). Reassignment emails the new assignee."""
    task = admin_workflow.edit_task(ctx, task_id, body.model_dump(exclude_unset=True))
    return TaskResponse(**task.to_dict())


@router.delete("/{task_id}")
def delete_task(task_id: str, ctx: WorkflowContext = Depends(get_context)):
    """Delete a task and its comments (admin)."""
    admin_workflow.delete_task(ctx, task_id)
    return {"message": f"Task {task_id} deleted"}


@router.patch("/{task_id}/status", response_model=TaskResponse)
def update_status(task_id: str, body: StatusUpdate, ctx: WorkflowContext = Depends(get_context)):
    """Change status; allowed for the assignee and admins."""
    task = employee_workflow.change_task_status(ctx, task_id, body.status)
    return TaskResponse(**task.to_dict())


@router.get("/{task_id}/comments", response_model=List[CommentResponse])
def list_comments(task_id: str, ctx: WorkflowContext = Depends(get_context)):
    detail = employee_workflow.get_my_task(ctx, task_id)
    return [CommentResponse(**c.to_dict()) for c in detail["comments"]]


@router.post("/{task_id}/comments", response_model=CommentResponse, status_code=201)
def add_comment(task_id: str, body: CommentCreate, ctx: WorkflowContext = Depends(get_context)):
    comment = employee_workflow.comment_on_task(ctx, task_id, body.content)
    return CommentResponse(**comment.to_dict())
