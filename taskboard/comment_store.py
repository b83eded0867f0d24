"""
Append-only comment threads on tasks.
"""
from typing import List

from sqlalchemy.orm import Session

from taskboard.db import write_transaction
from taskboard.errors import AuthorizationError, ValidationError
from taskboard.logger import get_logger
from taskboard.models import Comment
from taskboard.task_store import can_act_on_task, get_task

logger = get_logger(__name__)


def add_comment(db: Session, task_id: str, author_id: str, body: str) -> Comment:
    """
    Add a comment to a task as its assignee or an admin.

    The returned comment has ``author`` loaded so callers can echo the
    author's display name straight away.
    """
    content = (body or "").strip()
    if not content:
        raise ValidationError("Comment cannot be empty")

    task = get_task(db, task_id)
    if not can_act_on_task(db, task, author_id):
        raise AuthorizationError("Only the assignee or an admin can comment on this task")

    comment = Comment(task_id=task.id, user_id=author_id, content=content)
    with write_transaction(db):
        db.add(comment)
    db.refresh(comment)

    logger.info(f"Comment {comment.id} added to task {task.id} by {author_id}")
    return comment


def list_comments(db: Session, task_id: str) -> List[Comment]:
    """Comments on a task, oldest first."""
    return (
        db.query(Comment)
        .filter(Comment.task_id == task_id)
        .order_by(Comment.created_at.asc())
        .all()
    )
