# tests/test_comment_store.py

from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from taskboard import comment_store, task_store
from taskboard.errors import AuthorizationError, NotFoundError, ValidationError
from taskboard.models import Comment


@pytest.fixture()
def task(db, admin, employee):
    return task_store.create_task(
        db, title="Review pending claim documents", creator_id=admin.id, assignee_id=employee.id
    )


def test_assignee_can_comment(db, task, employee):
    comment = comment_store.add_comment(db, task.id, employee.id, "  Started on this today.  ")

    assert comment.content == "Started on this today."
    assert comment.task_id == task.id
    assert comment.user_id == employee.id
    assert comment.to_dict()["author_name"] == "Erin Employee"


def test_admin_can_comment_on_any_task(db, task, admin):
    comment = comment_store.add_comment(db, task.id, admin.id, "Thanks, ping me if blocked.")

    assert comment.to_dict()["author_name"] == "Ada Admin"


def test_other_employee_cannot_comment(db, task, other_employee):
    with pytest.raises(AuthorizationError):
        comment_store.add_comment(db, task.id, other_employee.id, "Can I help?")
    assert db.query(Comment).count() == 0


@pytest.mark.parametrize("body", ["", "   ", "\n\t", None])
def test_empty_comment_is_rejected_before_any_lookup(body):
    db = MagicMock()

    with pytest.raises(ValidationError):
        comment_store.add_comment(db, "task-1", "user-1", body)

    assert db.method_calls == []


def test_comment_on_unknown_task(db, employee):
    with pytest.raises(NotFoundError):
        comment_store.add_comment(db, "missing", employee.id, "hello")


def test_comments_are_listed_oldest_first(db, task, admin, employee):
    first = comment_store.add_comment(db, task.id, employee.id, "first")
    second = comment_store.add_comment(db, task.id, admin.id, "second")
    third = comment_store.add_comment(db, task.id, employee.id, "third")

    base = datetime(2025, 3, 1, 12, 0, 0)
    second.created_at = base
    third.created_at = base + timedelta(minutes=1)
    first.created_at = base + timedelta(minutes=2)
    db.commit()

    listed = comment_store.list_comments(db, task.id)

    assert [c.content for c in listed] == ["second", "third", "first"]


def test_list_comments_is_scoped_to_task(db, task, admin, employee):
    other = task_store.create_task(db, title="Other", creator_id=admin.id, assignee_id=employee.id)
    comment_store.add_comment(db, task.id, employee.id, "on the first task")
    comment_store.add_comment(db, other.id, employee.id, "on the other task")

    assert [c.content for c in comment_store.list_comments(db, task.id)] == ["on the first task"]
    assert comment_store.list_comments(db, "missing") == []
