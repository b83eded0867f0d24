"""
Best-effort email notifications.

Workflows never send email inline. They enqueue jobs on a NotificationOutbox,
which is flushed after the triggering write has committed (FastAPI runs the
flush as a background task once the response is sent). A failed notification
is logged and reported through its result; it never fails the workflow.
"""
import enum
import html
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Tuple

from taskboard.config import settings
from taskboard.email_client import EmailClient, get_email_client
from taskboard.errors import IntegrationError
from taskboard.logger import get_logger

logger = get_logger(__name__)


class NotificationKind(str, enum.Enum):
    REGISTRATION_CONFIRMATION = "registration-confirmation"
    PASSWORD_RESET = "password-reset"
    TASK_ASSIGNMENT = "task-assignment"
    ADMIN_ALERT = "admin-alert"
    INVITATION = "invitation"


@dataclass
class Recipient:
    email: str
    name: Optional[str] = None


@dataclass
class NotificationResult:
    success: bool
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


ResultCallback = Callable[["NotificationJob", NotificationResult], None]


@dataclass
class NotificationJob:
    kind: NotificationKind
    recipient: Recipient
    template_data: Dict[str, Any]
    on_result: Optional[ResultCallback] = None


# ============================================================================
# Templates
# ============================================================================

def _page(greeting: str, paragraphs: List[str], signature: str = "The Task Management Team") -> str:
    body = "\n".join(f"        <p>{p}</p>" for p in paragraphs)
    return (
        "<html>\n"
        "  <head></head>\n"
        "  <body>\n"
        f"        <p>{greeting}</p>\n"
        f"{body}\n"
        "        <p>Best regards,</p>\n"
        f"        <p>{signature}</p>\n"
        "  </body>\n"
        "</html>"
    )


def _registration_confirmation(name: str, data: Dict[str, Any]) -> Tuple[str, str]:
    link = html.escape(data["verification_link"], quote=True)
    return (
        "Welcome to Task Management System! Please confirm your email",
        _page(f"Hello {name},", [
            "Thank you for registering with Task Management System. "
            "Please click the link below to confirm your email address:",
            f'<a href="{link}">Confirm Email</a>',
            "If you did not register for this service, please ignore this email.",
        ]),
    )


def _password_reset(name: str, data: Dict[str, Any]) -> Tuple[str, str]:
    link = html.escape(data["reset_link"], quote=True)
    return (
        "Task Management System - Password Reset Request",
        _page(f"Hello {name},", [
            "You have requested to reset your password for your Task Management System "
            "account. Please click the link below to reset your password:",
            f'<a href="{link}">Reset Password</a>',
            "This link will expire in a short period. If you did not request a password "
            "reset, please ignore this email.",
        ]),
    )


def _task_assignment(name: str, data: Dict[str, Any]) -> Tuple[str, str]:
    title = html.escape(data["task_title"])
    link = html.escape(data["task_link"], quote=True)
    assigner = html.escape(data.get("assigner_name") or "an administrator")
    return (
        f"New Task Assigned: {data['task_title']}",
        _page(f"Hello {name},", [
            f"You have been assigned a new task by {assigner}: <strong>{title}</strong>.",
            f'You can view the task details here: <a href="{link}">View Task</a>',
        ]),
    )


def _admin_alert(name: str, data: Dict[str, Any]) -> Tuple[str, str]:
    subject = html.escape(data["alert_subject"])
    message = html.escape(data["alert_message"])
    return (
        f"Admin Alert: {data['alert_subject']}",
        _page("Dear Admin,", [
            "An important alert has been triggered in the Task Management System:",
            f"<strong>Subject:</strong> {subject}",
            f"<strong>Message:</strong> {message}",
            "Please take appropriate action.",
        ], signature="The Task Management System Automated Alert"),
    )


def _invitation(name: str, data: Dict[str, Any]) -> Tuple[str, str]:
    link = html.escape(data["signup_link"], quote=True)
    role = html.escape(data.get("role", "employee"))
    inviter = html.escape(data.get("inviter_name") or "An administrator")
    return (
        "You're invited to Task Management System",
        _page(f"Hello {name},", [
            f"{inviter} has invited you to join Task Management System as "
            f"<strong>{role}</strong>.",
            f'Create your account here: <a href="{link}">Accept Invitation</a>',
            "Please sign up with this email address.",
        ]),
    )


TEMPLATES: Dict[NotificationKind, Callable[[str, Dict[str, Any]], Tuple[str, str]]] = {
    NotificationKind.REGISTRATION_CONFIRMATION: _registration_confirmation,
    NotificationKind.PASSWORD_RESET: _password_reset,
    NotificationKind.TASK_ASSIGNMENT: _task_assignment,
    NotificationKind.ADMIN_ALERT: _admin_alert,
    NotificationKind.INVITATION: _invitation,
}


def render(kind: NotificationKind, recipient: Recipient, template_data: Dict[str, Any]) -> Tuple[str, str]:
    """Build (subject, html) for a notification kind."""
    name = html.escape(recipient.name or recipient.email)
    return TEMPLATES[NotificationKind(kind)](name, template_data)


def app_link(path: str) -> str:
    return f"{settings.app_base_url.rstrip('/')}/{path.lstrip('/')}"


# ============================================================================
# Dispatch
# ============================================================================

class Notifier:
    """Renders a template and hands it to the email client. Never raises."""

    def __init__(self, client: Optional[EmailClient] = None):
        self.client = client or get_email_client()

    def notify(
        self,
        kind: NotificationKind,
        recipient: Recipient,
        template_data: Dict[str, Any],
    ) -> NotificationResult:
        try:
            kind = NotificationKind(kind)
            subject, html_content = render(kind, recipient, template_data)
            data = self.client.send_email(
                to=[{"email": recipient.email, "name": recipient.name or recipient.email}],
                subject=subject,
                html_content=html_content,
                tags=[kind.value],
            )
        except IntegrationError as e:
            logger.warning(f"{getattr(kind, 'value', kind)} email to {recipient.email} failed: {e.message}")
            return NotificationResult(success=False, error=e.message)
        except Exception as e:
            logger.exception(f"Unexpected error sending {getattr(kind, 'value', kind)} email to {recipient.email}")
            return NotificationResult(success=False, error=str(e))

        return NotificationResult(success=True, data=data or {})


@lru_cache()
def get_notifier() -> Notifier:
    """Get cached notifier bound to the configured email client."""
    return Notifier()


class NotificationOutbox:
    """
    Queue of notifications produced while handling one request.
    """

    def __init__(self, notifier: Optional[Notifier] = None):
        self._notifier = notifier
        self._pending: List[NotificationJob] = []
        self.delivered: List[Tuple[NotificationJob, NotificationResult]] = []

    @property
    def notifier(self) -> Notifier:
        if self._notifier is None:
            self._notifier = get_notifier()
        return self._notifier

    @property
    def pending(self) -> List[NotificationJob]:
        return list(self._pending)

    def enqueue(
        self,
        kind: NotificationKind,
        recipient: Recipient,
        template_data: Dict[str, Any],
        on_result: Optional[ResultCallback] = None,
    ) -> NotificationJob:
        job = NotificationJob(
            kind=NotificationKind(kind),
            recipient=recipient,
            template_data=dict(template_data),
            on_result=on_result,
        )
        self._pending.append(job)
        logger.debug(f"Queued {job.kind.value} email for {recipient.email}")
        return job

    def flush(self) -> List[NotificationResult]:
        """Send every queued notification in order and report the results."""
        jobs, self._pending = self._pending, []
        results = []
        for job in jobs:
            result = self.notifier.notify(job.kind, job.recipient, job.template_data)
            if not result.success:
                logger.warning(
                    f"Notification {job.kind.value} to {job.recipient.email} not delivered: {result.error}"
                )
            if job.on_result is not None:
                try:
                    job.on_result(job, result)
                except Exception:
                    logger.exception("Notification result callback failed")
            self.delivered.append((job, result))
            results.append(result)
        return results
