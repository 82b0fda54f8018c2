from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, TYPE_CHECKING

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from taskboard.models.task import Task
    from taskboard.models.user import User


class ActivityAction(str, Enum):
    project_created = "PROJECT_CREATED"
    column_created = "COLUMN_CREATED"
    task_created = "TASK_CREATED"
    task_updated = "TASK_UPDATED"
    task_moved = "TASK_MOVED"
    task_assigned = "TASK_ASSIGNED"
    comment_added = "COMMENT_ADDED"
    member_invited = "MEMBER_INVITED"
    invite_accepted = "INVITE_ACCEPTED"
    label_created = "LABEL_CREATED"
    label_added_to_task = "LABEL_ADDED_TO_TASK"
    label_removed_from_task = "LABEL_REMOVED_FROM_TASK"


class ActivityLog(SQLModel, table=True):
    """Append-only audit row; one per committed state-changing mutation."""

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_project_created", "project_id", "created_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(
        sa_column=Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
    )
    actor_id: int = Field(
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    )
    task_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True),
    )
    action: str = Field(sa_column=Column(String(length=64), nullable=False))
    details: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    actor: Optional["User"] = Relationship()
    task: Optional["Task"] = Relationship()
