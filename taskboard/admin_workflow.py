"""
Admin-facing operations: task management, user roles and invitations.

Every entry point re-checks the admin role against the users table. Task
assignment and invitations queue an email on the context's outbox after the
write has committed; delivery problems never undo the write.
"""
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from taskboard import comment_store, invitation_store, task_store, user_store
from taskboard.context import WorkflowContext
from taskboard.logger import get_logger, log_operation
from taskboard.models import (
    Invitation,
    Priority,
    Role,
    Task,
    TaskStatus,
    User,
    utcnow,
)
from taskboard.notifier import (
    NotificationJob,
    NotificationKind,
    NotificationResult,
    Recipient,
    app_link,
)

logger = get_logger(__name__)

RECENT_USER_LIMIT = 5


def _log_delivery(job: NotificationJob, result: NotificationResult) -> None:
    if result.success:
        logger.info(f"{job.kind.value} email delivered to {job.recipient.email}")
    else:
        logger.warning(
            f"{job.kind.value} email to {job.recipient.email} failed ({result.error}); "
            "the triggering change was kept"
        )


def _queue_assignment_email(ctx: WorkflowContext, task: Task, assigner: User) -> None:
    assignee = user_store.find_user(ctx.db, task.assigned_to)
    if not assignee:
        return
    ctx.outbox.enqueue(
        NotificationKind.TASK_ASSIGNMENT,
        Recipient(email=assignee.email, name=assignee.full_name),
        {
            "task_title": task.title,
            "task_link": app_link(f"/mytasks/{task.id}"),
            "assigner_name": assigner.full_name,
        },
        on_result=_log_delivery,
    )


# ============================================================================
# Tasks
# ============================================================================

@log_operation("create_task")
def create_task(
    ctx: WorkflowContext,
    *,
    title: str,
    description: str = "",
    priority: Priority = Priority.MEDIUM,
    deadline: Optional[date] = None,
    assignee_id: Optional[str] = None,
) -> Task:
    admin = ctx.require_admin()
    task = task_store.create_task(
        ctx.db,
        title=title,
        description=description,
        priority=priority,
        deadline=deadline,
        assignee_id=assignee_id,
        creator_id=admin.id,
    )
    if task.assigned_to:
        _queue_assignment_email(ctx, task, admin)
    return task


@log_operation("edit_task")
def edit_task(ctx: WorkflowContext, task_id: str, fields: Dict[str, Any]) -> Task:
    admin = ctx.require_admin()
    task, reassigned = task_store.update_task(ctx.db, task_id, fields, admin.id)
    if reassigned:
        _queue_assignment_email(ctx, task, admin)
    return task


@log_operation("set_task_status")
def set_task_status(ctx: WorkflowContext, task_id: str, status: TaskStatus) -> Task:
    ctx.require_admin()
    return task_store.update_status(ctx.db, task_id, status, ctx.user_id)


@log_operation("delete_task")
def delete_task(ctx: WorkflowContext, task_id: str) -> None:
    ctx.require_admin()
    task_store.delete_task(ctx.db, task_id, ctx.user_id)


@log_operation("list_all_tasks")
def list_all_tasks(ctx: WorkflowContext) -> List[Task]:
    ctx.require_admin()
    return task_store.list_all_tasks(ctx.db)


@log_operation("get_task")
def get_task(ctx: WorkflowContext, task_id: str) -> Dict[str, Any]:
    ctx.require_admin()
    task = task_store.get_task(ctx.db, task_id)
    return {"task": task, "comments": comment_store.list_comments(ctx.db, task.id)}


# ============================================================================
# Users
# ============================================================================

@log_operation("list_users")
def list_users(ctx: WorkflowContext) -> List[User]:
    ctx.require_admin()
    return user_store.list_users(ctx.db)


@log_operation("change_user_role")
def change_user_role(ctx: WorkflowContext, user_id: str, role: Role) -> User:
    ctx.require_admin()
    return user_store.update_role(ctx.db, user_id, role)


# ============================================================================
# Invitations
# ============================================================================

@log_operation("invite_user")
def invite_user(ctx: WorkflowContext, email: str, role: Optional[Role] = None) -> Invitation:
    admin = ctx.require_admin()
    invitation = invitation_store.invite(ctx.db, email, admin.id, role)

    signup_link = app_link(f"/auth/signup?email={quote(invitation.email)}")
    logger.info(f"Invitation link for {invitation.email}: {signup_link}")
    ctx.outbox.enqueue(
        NotificationKind.INVITATION,
        Recipient(email=invitation.email),
        {
            "signup_link": signup_link,
            "role": invitation.role,
            "inviter_name": admin.full_name,
        },
        on_result=_log_delivery,
    )
    return invitation


@log_operation("revoke_invitation")
def revoke_invitation(ctx: WorkflowContext, invitation_id: str) -> None:
    ctx.require_admin()
    invitation_store.revoke(ctx.db, invitation_id)


@log_operation("list_pending_invitations")
def list_pending_invitations(ctx: WorkflowContext) -> List[Invitation]:
    ctx.require_admin()
    return invitation_store.list_pending_invitations(ctx.db)


# ============================================================================
# Dashboard & diagnostics
# ============================================================================

@log_operation("admin_dashboard")
def admin_dashboard(ctx: WorkflowContext) -> Dict[str, Any]:
    ctx.require_admin()
    users = user_store.list_users(ctx.db)
    tasks = task_store.list_all_tasks(ctx.db)
    pending = invitation_store.list_pending_invitations(ctx.db)
    today = utcnow().date()

    by_status = {s.value: 0 for s in TaskStatus}
    for t in tasks:
        by_status[t.status] = by_status.get(t.status, 0) + 1

    completed_today = sum(
        1 for t in tasks
        if t.status == TaskStatus.COMPLETED.value and t.updated_at and t.updated_at.date() == today
    )

    return {
        "total_users": len(users),
        "total_tasks": len(tasks),
        "active_tasks": len(tasks) - by_status[TaskStatus.COMPLETED.value],
        "completed_today": completed_today,
        "pending_invitations": len(pending),
        "tasks_by_status": by_status,
        "recent_users": users[:RECENT_USER_LIMIT],
    }


@log_operation("send_test_email")
def send_test_email(ctx: WorkflowContext, to_email: str) -> NotificationResult:
    """Send a registration email synchronously to check provider connectivity."""
    ctx.require_admin()
    return ctx.outbox.notifier.notify(
        NotificationKind.REGISTRATION_CONFIRMATION,
        Recipient(email=user_store.normalize_email(to_email), name="Test User"),
        {"verification_link": app_link("/auth/verify?token=testtoken123")},
    )
