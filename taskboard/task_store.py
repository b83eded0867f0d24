"""
Task persistence and the authorization rules around task mutation.

Status changes are open to the assignee and to admins; every other edit and
deletion is admin-only. Status values are not a guarded state machine: any of
not_picked, in_progress and completed may follow any other.
"""
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.db import write_transaction
from taskboard.errors import AuthorizationError, NotFoundError, ValidationError
from taskboard.logger import get_logger
from taskboard.models import Priority, Task, TaskStatus, utcnow
from taskboard.user_store import find_user, require_admin

logger = get_logger(__name__)

EDITABLE_FIELDS = ("title", "description", "status", "priority", "deadline", "assigned_to")


def _touch(task: Task) -> None:
    """Advance updated_at, strictly, even for back-to-back writes."""
    now = utcnow()
    if task.updated_at is not None and now <= task.updated_at:
        now = task.updated_at + timedelta(microseconds=1)
    task.updated_at = now


def _clean_title(title: Optional[str]) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Task title is required")
    return cleaned


def _parse_status(value: Any) -> str:
    try:
        return TaskStatus(value).value
    except ValueError:
        raise ValidationError(f"Invalid task status: {value}")


def _parse_priority(value: Any) -> str:
    try:
        return Priority(value).value
    except ValueError:
        raise ValidationError(f"Invalid task priority: {value}")


def _parse_deadline(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid deadline: {value}")


def _resolve_assignee(db: Session, assignee_id: Optional[str]) -> Optional[str]:
    if not assignee_id:
        return None
    if not find_user(db, assignee_id):
        raise NotFoundError(f"Assignee {assignee_id} not found")
    return assignee_id


def create_task(
    db: Session,
    *,
    title: str,
    creator_id: str,
    description: str = "",
    priority: Priority = Priority.MEDIUM,
    deadline: Optional[date] = None,
    assignee_id: Optional[str] = None,
) -> Task:
    """
    Create a task in status not_picked.

    The caller is responsible for notifying the assignee once this returns.
    """
    title = _clean_title(title)
    if not creator_id:
        raise ValidationError("Task creator is required")
    if not find_user(db, creator_id):
        raise NotFoundError(f"Creator {creator_id} not found")

    task = Task(
        title=title,
        description=(description or "").strip(),
        status=TaskStatus.NOT_PICKED.value,
        priority=_parse_priority(priority),
        deadline=_parse_deadline(deadline),
        assigned_to=_resolve_assignee(db, assignee_id),
        created_by=creator_id,
    )
    with write_transaction(db):
        db.add(task)
    db.refresh(task)

    logger.info(f"Created task {task.id} '{task.title}' (assignee={task.assigned_to or 'unassigned'})")
    return task


def get_task(db: Session, task_id: str) -> Task:
    task = db.get(Task, task_id) if task_id else None
    if not task:
        raise NotFoundError(f"Task {task_id} not found")
    return task


def list_tasks_for_assignee(db: Session, user_id: str) -> List[Task]:
    """Tasks assigned to the user, newest first."""
    return (
        db.query(Task)
        .filter(Task.assigned_to == user_id)
        .order_by(Task.created_at.desc())
        .all()
    )


def list_all_tasks(db: Session) -> List[Task]:
    """Every task regardless of assignee, newest first."""
    return db.query(Task).order_by(Task.created_at.desc()).all()


def can_act_on_task(db: Session, task: Task, user_id: Optional[str]) -> bool:
    """True when the user is the task's assignee or an admin. Lookup failures deny."""
    try:
        user = find_user(db, user_id)
    except SQLAlchemyError as e:
        logger.error(f"User lookup failed for {user_id}: {e}")
        return False
    if not user:
        return False
    return user.is_admin or (task.assigned_to is not None and task.assigned_to == user.id)


def update_status(db: Session, task_id: str, new_status: TaskStatus, acting_user_id: str) -> Task:
    """
    Set the task status. Allowed for the assignee and for any admin.

    Raises:
        NotFoundError: unknown task
        AuthorizationError: acting user is neither assignee nor admin
        ValidationError: unknown status value
    """
    status = _parse_status(new_status)
    task = get_task(db, task_id)

    if not can_act_on_task(db, task, acting_user_id):
        raise AuthorizationError("Only the assignee or an admin can change this task's status")

    previous = task.status
    with write_transaction(db):
        task.status = status
        _touch(task)

    logger.info(f"Task {task.id} status {previous} -> {status} by {acting_user_id}")
    return task


def update_task(
    db: Session,
    task_id: str,
    fields: Dict[str, Any],
    acting_user_id: str,
) -> Tuple[Task, bool]:
    """
    Admin edit of any editable field present in ``fields``.

    Returns the task and whether it moved to a new, non-null assignee, in
    which case the caller notifies that assignee.
    """
    require_admin(db, acting_user_id)
    task = get_task(db, task_id)

    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

    changes: Dict[str, Any] = {}
    if "title" in fields:
        changes["title"] = _clean_title(fields["title"])
    if "description" in fields:
        changes["description"] = (fields["description"] or "").strip()
    if "status" in fields:
        changes["status"] = _parse_status(fields["status"])
    if "priority" in fields:
        changes["priority"] = _parse_priority(fields["priority"])
    if "deadline" in fields:
        changes["deadline"] = _parse_deadline(fields["deadline"])
    if "assigned_to" in fields:
        changes["assigned_to"] = _resolve_assignee(db, fields["assigned_to"])

    previous_assignee = task.assigned_to
    with write_transaction(db):
        for name, value in changes.items():
            setattr(task, name, value)
        _touch(task)

    assignee_changed = task.assigned_to is not None and task.assigned_to != previous_assignee
    logger.info(
        f"Task {task.id} updated by {acting_user_id}: {sorted(changes)}"
        + (f" (reassigned to {task.assigned_to})" if assignee_changed else "")
    )
    return task, assignee_changed


def delete_task(db: Session, task_id: str, acting_user_id: str) -> None:
    """Hard-delete a task and its comments. Admin-only."""
    require_admin(db, acting_user_id)
    task = get_task(db, task_id)
    comment_count = len(task.comments)
    with write_transaction(db):
        db.delete(task)
    logger.info(f"Deleted task {task_id} and {comment_count} comment(s)")
