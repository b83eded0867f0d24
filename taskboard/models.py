"""
SQLAlchemy models for the task management backend.
Maps the users, tasks, comments and invitations tables.
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Text,
    Date,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, comparable across SQLite and PostgreSQL rows."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


class Role(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INVITED = "invited"


class TaskStatus(str, enum.Enum):
    NOT_PICKED = "not_picked"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class User(Base):
    """
    Model for user accounts. Role is authoritative here and nowhere else.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(120), nullable=False)
    role = Column(String(20), nullable=False, default=Role.EMPLOYEE.value)
    avatar_url = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    assigned_tasks = relationship(
        "Task", back_populates="assignee", foreign_keys="Task.assigned_to"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "avatar_url": self.avatar_url,
            "status": self.status,
            "created_at": _iso(self.created_at),
        }


class Task(Base):
    """
    Model for tasks. Unassigned tasks have assigned_to = NULL.
    """
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default=TaskStatus.NOT_PICKED.value)
    priority = Column(String(20), nullable=False, default=Priority.MEDIUM.value)
    deadline = Column(Date, nullable=True)
    assigned_to = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    assignee = relationship(
        "User", back_populates="assigned_tasks", foreign_keys=[assigned_to]
    )
    creator = relationship("User", foreign_keys=[created_by])
    comments = relationship(
        "Comment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )

    __table_args__ = (
        Index("ix_tasks_assigned_to", "assigned_to"),
        Index("ix_tasks_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title={self.title!r}, status={self.status})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "deadline": _iso(self.deadline),
            "assigned_to": self.assigned_to,
            "assignee_name": self.assignee.full_name if self.assignee else None,
            "assignee_email": self.assignee.email if self.assignee else None,
            "created_by": self.created_by,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Comment(Base):
    """
    Model for comments on a task. Deleted together with their task.
    """
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=new_id)
    task_id = Column(
        String(36),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    task = relationship("Task", back_populates="comments")
    author = relationship("User")

    __table_args__ = (
        Index("ix_comments_task_created", "task_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, task_id={self.task_id})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "user_id": self.user_id,
            "author_name": self.author.full_name if self.author else None,
            "content": self.content,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Invitation(Base):
    """
    Model for onboarding invitations. One row per email address.
    """
    __tablename__ = "invitations"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    invited_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    role = Column(String(20), nullable=False, default=Role.EMPLOYEE.value)
    status = Column(
        String(20),
        nullable=False,
        default=InvitationStatus.PENDING.value,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)
    accepted_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    inviter = relationship("User", foreign_keys=[invited_by])

    def __repr__(self) -> str:
        return f"<Invitation(email={self.email}, status={self.status})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "invited_by": self.invited_by,
            "role": self.role,
            "status": self.status,
            "created_at": _iso(self.created_at),
            "accepted_user_id": self.accepted_user_id,
        }
