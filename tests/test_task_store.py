# tests/test_task_store.py

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from taskboard import comment_store, task_store
from taskboard.errors import AuthorizationError, NotFoundError, ValidationError
from taskboard.models import Comment, Priority, Task, TaskStatus


def _task(db, admin, title="Write docs", assignee=None, **kwargs) -> Task:
    return task_store.create_task(
        db,
        title=title,
        creator_id=admin.id,
        assignee_id=assignee.id if assignee else None,
        **kwargs,
    )


def test_create_task_defaults(db, admin, employee):
    task = _task(db, admin, assignee=employee, description="  intro and usage  ")

    assert task.status == TaskStatus.NOT_PICKED.value
    assert task.priority == Priority.MEDIUM.value
    assert task.description == "intro and usage"
    assert task.deadline is None
    assert task.assigned_to == employee.id
    assert task.created_by == admin.id
    assert task.created_at is not None and task.updated_at is not None


def test_create_task_accepts_unassigned_and_deadline(db, admin):
    task = _task(db, admin, priority=Priority.HIGH, deadline=date(2030, 1, 31))

    assert task.assigned_to is None
    assert task.deadline == date(2030, 1, 31)
    assert task.to_dict()["assignee_name"] is None


@pytest.mark.parametrize("title", ["", "   ", None])
def test_create_task_requires_title(db, admin, title):
    with pytest.raises(ValidationError):
        _task(db, admin, title=title)
    assert db.query(Task).count() == 0


def test_create_task_rejects_unknown_assignee(db, admin):
    with pytest.raises(NotFoundError):
        task_store.create_task(db, title="x", creator_id=admin.id, assignee_id="missing")


def test_create_task_requires_creator(db):
    with pytest.raises(ValidationError):
        task_store.create_task(db, title="x", creator_id="")


def test_list_tasks_for_assignee_only_returns_their_tasks(db, admin, employee, other_employee):
    mine = [_task(db, admin, f"mine {i}", assignee=employee) for i in range(3)]
    _task(db, admin, "theirs", assignee=other_employee)
    _task(db, admin, "nobody's")

    listed = task_store.list_tasks_for_assignee(db, employee.id)

    assert {t.id for t in listed} == {t.id for t in mine}
    assert all(t.assigned_to == employee.id for t in listed)


def test_task_lists_are_newest_first(db, admin, employee):
    base = datetime(2025, 1, 1, 9, 0, 0)
    tasks = [_task(db, admin, f"t{i}", assignee=employee) for i in range(3)]
    for offset, task in enumerate(tasks):
        task.created_at = base + timedelta(hours=offset)
    db.commit()

    expected = [tasks[2].id, tasks[1].id, tasks[0].id]
    assert [t.id for t in task_store.list_tasks_for_assignee(db, employee.id)] == expected
    assert [t.id for t in task_store.list_all_tasks(db)] == expected


def test_list_all_tasks_includes_unassigned(db, admin, employee):
    _task(db, admin, assignee=employee)
    _task(db, admin, "unassigned")

    assert len(task_store.list_all_tasks(db)) == 2


def test_update_status_by_assignee_touches_updated_at(db, admin, employee):
    task = _task(db, admin, assignee=employee)
    before = task.updated_at

    updated = task_store.update_status(db, task.id, TaskStatus.IN_PROGRESS, employee.id)

    assert updated.status == "in_progress"
    assert updated.updated_at > before


def test_update_status_by_admin(db, admin, employee):
    task = _task(db, admin, assignee=employee)

    updated = task_store.update_status(db, task.id, "completed", admin.id)

    assert updated.status == "completed"


def test_update_status_rejects_other_users(db, admin, employee, other_employee):
    task = _task(db, admin, assignee=employee)

    with pytest.raises(AuthorizationError):
        task_store.update_status(db, task.id, TaskStatus.IN_PROGRESS, other_employee.id)
    with pytest.raises(AuthorizationError):
        task_store.update_status(db, task.id, TaskStatus.IN_PROGRESS, "unknown-user")

    db.refresh(task)
    assert task.status == TaskStatus.NOT_PICKED.value


def test_update_status_on_unassigned_task_is_admin_only(db, admin, employee):
    task = _task(db, admin)

    with pytest.raises(AuthorizationError):
        task_store.update_status(db, task.id, TaskStatus.IN_PROGRESS, employee.id)
    assert task_store.update_status(db, task.id, TaskStatus.IN_PROGRESS, admin.id).status == "in_progress"


def test_status_transitions_are_not_forward_only(db, admin, employee):
    task = _task(db, admin, assignee=employee)
    task_store.update_status(db, task.id, TaskStatus.COMPLETED, employee.id)

    reopened = task_store.update_status(db, task.id, TaskStatus.NOT_PICKED, employee.id)

    assert reopened.status == TaskStatus.NOT_PICKED.value


def test_same_status_still_touches_updated_at(db, admin, employee):
    task = _task(db, admin, assignee=employee)
    first = task_store.update_status(db, task.id, TaskStatus.IN_PROGRESS, employee.id).updated_at

    second = task_store.update_status(db, task.id, TaskStatus.IN_PROGRESS, employee.id).updated_at

    assert second > first


def test_update_status_rejects_unknown_status(db, admin, employee):
    task = _task(db, admin, assignee=employee)

    with pytest.raises(ValidationError):
        task_store.update_status(db, task.id, "blocked", employee.id)


def test_update_status_unknown_task(db, employee):
    with pytest.raises(NotFoundError):
        task_store.update_status(db, "missing", TaskStatus.COMPLETED, employee.id)


def test_update_task_is_admin_only(db, admin, employee):
    task = _task(db, admin, assignee=employee)

    with pytest.raises(AuthorizationError):
        task_store.update_task(db, task.id, {"title": "Hijacked"}, employee.id)


def test_update_task_applies_only_given_fields(db, admin, employee):
    task = _task(db, admin, assignee=employee, description="keep me")
    before = task.updated_at

    updated, reassigned = task_store.update_task(
        db, task.id, {"title": "Renamed", "priority": "high", "deadline": "2030-06-01"}, admin.id
    )

    assert updated.title == "Renamed"
    assert updated.priority == "high"
    assert updated.deadline == date(2030, 6, 1)
    assert updated.description == "keep me"
    assert updated.assigned_to == employee.id
    assert updated.updated_at > before
    assert reassigned is False


def test_update_task_reports_reassignment(db, admin, employee, other_employee):
    task = _task(db, admin, assignee=employee)

    _, reassigned = task_store.update_task(db, task.id, {"assigned_to": other_employee.id}, admin.id)
    assert reassigned is True

    _, reassigned = task_store.update_task(db, task.id, {"assigned_to": other_employee.id}, admin.id)
    assert reassigned is False

    updated, reassigned = task_store.update_task(db, task.id, {"assigned_to": None}, admin.id)
    assert reassigned is False
    assert updated.assigned_to is None


def test_update_task_rejects_unknown_fields(db, admin, employee):
    task = _task(db, admin, assignee=employee)

    with pytest.raises(ValidationError):
        task_store.update_task(db, task.id, {"created_by": employee.id}, admin.id)


def test_update_task_rejects_blank_title(db, admin):
    task = _task(db, admin)

    with pytest.raises(ValidationError):
        task_store.update_task(db, task.id, {"title": "  "}, admin.id)


def test_delete_task_removes_task_and_comments(db, admin, employee):
    task = _task(db, admin, "Prepare Q1 report", assignee=employee)
    for body in ("one", "two", "three"):
        comment_store.add_comment(db, task.id, employee.id, body)
    keep = _task(db, admin, "keep", assignee=employee)
    task_id, keep_id = task.id, keep.id

    task_store.delete_task(db, task_id, admin.id)

    assert [t.id for t in task_store.list_all_tasks(db)] == [keep_id]
    assert db.query(Comment).count() == 0
    with pytest.raises(NotFoundError):
        task_store.get_task(db, task_id)


def test_delete_task_is_admin_only(db, admin, employee):
    task = _task(db, admin, assignee=employee)

    with pytest.raises(AuthorizationError):
        task_store.delete_task(db, task.id, employee.id)
    assert task_store.get_task(db, task.id).id == task.id


def test_lookup_failure_denies_status_change(db, admin, employee, monkeypatch):
    task = _task(db, admin, assignee=employee)

    def broken_lookup(*args, **kwargs):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(task_store, "find_user", broken_lookup)

    assert task_store.can_act_on_task(db, task, employee.id) is False
    with pytest.raises(AuthorizationError):
        task_store.update_status(db, task.id, TaskStatus.COMPLETED, employee.id)
