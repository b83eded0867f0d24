# tests/test_workflows.py

from __future__ import annotations

from datetime import date

import pytest

from taskboard import admin_workflow, employee_workflow, invitation_store
from taskboard.context import WorkflowContext
from taskboard.errors import (
    AlreadyAcceptedError,
    AuthenticationError,
    AuthorizationError,
    ValidationError,
)
from taskboard.identity import UserIdentity
from taskboard.models import Comment, InvitationStatus, Priority, Role, TaskStatus
from taskboard.notifier import NotificationKind, NotificationOutbox, Notifier

from .fakes import FakeEmailClient


def test_create_assigned_task_emails_assignee_after_commit(make_ctx, outbox, email_client, admin, employee):
    ctx = make_ctx(admin)

    task = admin_workflow.create_task(
        ctx,
        title="Prepare Q1 report",
        description="Numbers for the board",
        priority=Priority.HIGH,
        deadline=date(2030, 3, 31),
        assignee_id=employee.id,
    )

    assert task.status == TaskStatus.NOT_PICKED.value
    assert email_client.sent == []
    [job] = outbox.pending
    assert job.kind == NotificationKind.TASK_ASSIGNMENT
    assert job.recipient.email == "employee42@example.com"
    assert job.template_data["task_title"] == "Prepare Q1 report"
    assert job.template_data["task_link"].endswith(f"/mytasks/{task.id}")
    assert job.template_data["assigner_name"] == "Ada Admin"

    outbox.flush()

    [sent] = email_client.sent
    assert sent["subject"] == "New Task Assigned: Prepare Q1 report"
    assert sent["to"][0]["email"] == "employee42@example.com"


def test_create_unassigned_task_sends_nothing(make_ctx, outbox, admin):
    admin_workflow.create_task(make_ctx(admin), title="Triage backlog")

    assert outbox.pending == []


def test_task_survives_email_failure(db, admin, employee):
    outbox = NotificationOutbox(Notifier(FakeEmailClient(fail=True)))
    ctx = WorkflowContext(db=db, identity=UserIdentity.from_user(admin), outbox=outbox)

    task = admin_workflow.create_task(ctx, title="Prepare Q1 report", assignee_id=employee.id)
    [result] = outbox.flush()

    assert result.success is False
    assert [t.id for t in admin_workflow.list_all_tasks(ctx)] == [task.id]


def test_employee_cannot_use_admin_workflows(make_ctx, employee, outbox):
    ctx = make_ctx(employee)

    with pytest.raises(AuthorizationError):
        admin_workflow.create_task(ctx, title="Self-assigned")
    with pytest.raises(AuthorizationError):
        admin_workflow.list_all_tasks(ctx)
    with pytest.raises(AuthorizationError):
        admin_workflow.invite_user(ctx, "bob@example.com")
    with pytest.raises(AuthorizationError):
        admin_workflow.change_user_role(ctx, employee.id, Role.ADMIN)
    assert outbox.pending == []


def test_admin_check_uses_current_role_not_identity(db, outbox, admin):
    # Identity captured while still an admin, demoted afterwards.
    ctx = WorkflowContext(db=db, identity=UserIdentity.from_user(admin), outbox=outbox)
    admin_workflow.change_user_role(ctx, admin.id, Role.EMPLOYEE)

    with pytest.raises(AuthorizationError):
        admin_workflow.list_users(ctx)


def test_anonymous_context_is_rejected(db, outbox):
    ctx = WorkflowContext(db=db, identity=None, outbox=outbox)

    with pytest.raises(AuthenticationError):
        employee_workflow.list_my_tasks(ctx)


def test_employee_status_change_on_own_task(make_ctx, admin, employee):
    task = admin_workflow.create_task(make_ctx(admin), title="Prepare Q1 report", assignee_id=employee.id)
    before = task.updated_at

    updated = employee_workflow.change_task_status(make_ctx(employee), task.id, "in_progress")

    assert updated.status == "in_progress"
    assert updated.updated_at > before


def test_employee_cannot_touch_someone_elses_task(make_ctx, admin, employee, other_employee):
    task = admin_workflow.create_task(make_ctx(admin), title="Prepare Q1 report", assignee_id=employee.id)
    ctx = make_ctx(other_employee)

    with pytest.raises(AuthorizationError):
        employee_workflow.change_task_status(ctx, task.id, "completed")
    with pytest.raises(AuthorizationError):
        employee_workflow.get_my_task(ctx, task.id)
    with pytest.raises(AuthorizationError):
        employee_workflow.comment_on_task(ctx, task.id, "mine now")


def test_list_my_tasks_filters(make_ctx, admin, employee, other_employee):
    admin_ctx = make_ctx(admin)
    report = admin_workflow.create_task(
        admin_ctx, title="Prepare Q1 report", description="finance", assignee_id=employee.id
    )
    badges = admin_workflow.create_task(
        admin_ctx, title="Update dashboard badges", description="Quarterly REPORT view", assignee_id=employee.id
    )
    admin_workflow.create_task(admin_ctx, title="Report for someone else", assignee_id=other_employee.id)
    employee_workflow.change_task_status(make_ctx(employee), badges.id, TaskStatus.COMPLETED)
    ctx = make_ctx(employee)

    assert {t.id for t in employee_workflow.list_my_tasks(ctx)} == {report.id, badges.id}
    assert {t.id for t in employee_workflow.list_my_tasks(ctx, status="all")} == {report.id, badges.id}
    assert [t.id for t in employee_workflow.list_my_tasks(ctx, status="completed")] == [badges.id]
    assert {t.id for t in employee_workflow.list_my_tasks(ctx, search="report")} == {report.id, badges.id}
    assert [t.id for t in employee_workflow.list_my_tasks(ctx, search="FINANCE")] == [report.id]
    with pytest.raises(ValidationError):
        employee_workflow.list_my_tasks(ctx, status="blocked")


def test_task_detail_includes_thread(make_ctx, admin, employee):
    task = admin_workflow.create_task(make_ctx(admin), title="Prepare Q1 report", assignee_id=employee.id)
    employee_workflow.comment_on_task(make_ctx(employee), task.id, "Started")
    employee_workflow.comment_on_task(make_ctx(admin), task.id, "Great")

    detail = employee_workflow.get_my_task(make_ctx(employee), task.id)

    assert detail["task"].id == task.id
    assert [c.content for c in detail["comments"]] == ["Started", "Great"]
    assert admin_workflow.get_task(make_ctx(admin), task.id)["task"].id == task.id


def test_reassignment_emails_only_new_assignee(make_ctx, outbox, admin, employee, other_employee):
    ctx = make_ctx(admin)
    task = admin_workflow.create_task(ctx, title="Prepare Q1 report", assignee_id=employee.id)
    outbox.flush()

    admin_workflow.edit_task(ctx, task.id, {"priority": "low"})
    assert outbox.pending == []

    admin_workflow.edit_task(ctx, task.id, {"assigned_to": other_employee.id})
    [job] = outbox.pending
    assert job.recipient.email == "other@example.com"


def test_admin_can_set_status_of_any_task(make_ctx, admin, employee):
    ctx = make_ctx(admin)
    task = admin_workflow.create_task(ctx, title="Prepare Q1 report", assignee_id=employee.id)

    assert admin_workflow.set_task_status(ctx, task.id, TaskStatus.COMPLETED).status == "completed"


def test_delete_task_with_comments(db, make_ctx, admin, employee):
    ctx = make_ctx(admin)
    task = admin_workflow.create_task(ctx, title="Prepare Q1 report", assignee_id=employee.id)
    for body in ("one", "two", "three"):
        employee_workflow.comment_on_task(make_ctx(employee), task.id, body)
    task_id = task.id

    admin_workflow.delete_task(ctx, task_id)

    assert admin_workflow.list_all_tasks(ctx) == []
    assert db.query(Comment).filter(Comment.task_id == task_id).count() == 0


def test_invite_queues_invitation_email(make_ctx, outbox, email_client, admin):
    invitation = admin_workflow.invite_user(make_ctx(admin), "Bob@Example.com", Role.ADMIN)

    assert invitation.status == InvitationStatus.PENDING.value
    [job] = outbox.pending
    assert job.kind == NotificationKind.INVITATION
    assert job.recipient.email == "bob@example.com"
    assert job.template_data["role"] == "admin"
    assert "email=bob%40example.com" in job.template_data["signup_link"]

    outbox.flush()
    assert email_client.sent[0]["subject"] == "You're invited to Task Management System"


def test_revoke_then_reinvite(make_ctx, admin):
    ctx = make_ctx(admin)
    first = admin_workflow.invite_user(ctx, "bob@example.com")

    admin_workflow.revoke_invitation(ctx, first.id)
    assert admin_workflow.list_pending_invitations(ctx) == []

    second = admin_workflow.invite_user(ctx, "bob@example.com")
    assert second.id != first.id
    assert [i.id for i in admin_workflow.list_pending_invitations(ctx)] == [second.id]


def test_invite_accepted_email_is_rejected_without_email(db, make_ctx, outbox, admin, employee):
    ctx = make_ctx(admin)
    admin_workflow.invite_user(ctx, "bob@example.com")
    invitation_store.accept(db, "bob@example.com", employee.id)
    outbox.flush()

    with pytest.raises(AlreadyAcceptedError):
        admin_workflow.invite_user(ctx, "bob@example.com")
    assert outbox.pending == []


def test_dashboards(make_ctx, admin, employee, other_employee):
    admin_ctx = make_ctx(admin)
    first = admin_workflow.create_task(admin_ctx, title="a", priority=Priority.HIGH, assignee_id=employee.id)
    admin_workflow.create_task(admin_ctx, title="b", priority=Priority.LOW, assignee_id=employee.id)
    admin_workflow.create_task(admin_ctx, title="c", assignee_id=other_employee.id)
    employee_workflow.change_task_status(make_ctx(employee), first.id, TaskStatus.COMPLETED)
    admin_workflow.invite_user(admin_ctx, "bob@example.com")

    mine = employee_workflow.employee_dashboard(make_ctx(employee))
    assert mine["total"] == 2
    assert mine["by_status"] == {"not_picked": 1, "in_progress": 0, "completed": 1}
    assert mine["by_priority"] == {"low": 1, "medium": 0, "high": 1}
    assert len(mine["recent_tasks"]) == 2

    overview = admin_workflow.admin_dashboard(admin_ctx)
    assert overview["total_users"] == 3
    assert overview["total_tasks"] == 3
    assert overview["active_tasks"] == 2
    assert overview["completed_today"] == 1
    assert overview["pending_invitations"] == 1


def test_send_test_email_reports_result(make_ctx, email_client, admin):
    result = admin_workflow.send_test_email(make_ctx(admin), "ops@example.com")

    assert result.success is True
    assert email_client.sent[0]["to"][0]["email"] == "ops@example.com"
