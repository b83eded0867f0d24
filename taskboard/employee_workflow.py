"""
Employee-facing operations: the signed-in user's own tasks.
"""
from typing import Any, Dict, List, Optional

from taskboard import comment_store, task_store
from taskboard.context import WorkflowContext
from taskboard.errors import AuthorizationError, ValidationError
from taskboard.logger import get_logger, log_operation
from taskboard.models import Comment, Priority, Task, TaskStatus

logger = get_logger(__name__)

RECENT_TASK_LIMIT = 5


def _visible_task(ctx: WorkflowContext, task_id: str) -> Task:
    task = task_store.get_task(ctx.db, task_id)
    if not task_store.can_act_on_task(ctx.db, task, ctx.user_id):
        raise AuthorizationError("You do not have access to this task")
    return task


@log_operation("list_my_tasks")
def list_my_tasks(
    ctx: WorkflowContext,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Task]:
    """Own tasks, newest first, optionally filtered by status and a search term."""
    tasks = task_store.list_tasks_for_assignee(ctx.db, ctx.user_id)

    if status and status != "all":
        try:
            wanted = TaskStatus(status).value
        except ValueError:
            raise ValidationError(f"Invalid task status: {status}")
        tasks = [t for t in tasks if t.status == wanted]

    term = (search or "").strip().lower()
    if term:
        tasks = [
            t for t in tasks
            if term in t.title.lower() or term in (t.description or "").lower()
        ]
    return tasks


@log_operation("get_my_task")
def get_my_task(ctx: WorkflowContext, task_id: str) -> Dict[str, Any]:
    """Task detail with its comment thread."""
    task = _visible_task(ctx, task_id)
    return {
        "task": task,
        "comments": comment_store.list_comments(ctx.db, task.id),
    }


@log_operation("change_task_status")
def change_task_status(ctx: WorkflowContext, task_id: str, status: str) -> Task:
    return task_store.update_status(ctx.db, task_id, status, ctx.user_id)


@log_operation("comment_on_task")
def comment_on_task(ctx: WorkflowContext, task_id: str, body: str) -> Comment:
    return comment_store.add_comment(ctx.db, task_id, ctx.user_id, body)


@log_operation("employee_dashboard")
def employee_dashboard(ctx: WorkflowContext) -> Dict[str, Any]:
    tasks = task_store.list_tasks_for_assignee(ctx.db, ctx.user_id)
    by_status = {s.value: 0 for s in TaskStatus}
    by_priority = {p.value: 0 for p in Priority}
    for t in tasks:
        by_status[t.status] = by_status.get(t.status, 0) + 1
        by_priority[t.priority] = by_priority.get(t.priority, 0) + 1

    return {
        "total": len(tasks),
        "by_status": by_status,
        "by_priority": by_priority,
        "recent_tasks": tasks[:RECENT_TASK_LIMIT],
    }
