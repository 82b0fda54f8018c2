from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlmodel import Enum as SQLEnum, Field, Relationship, SQLModel

from taskboard.models.label import TaskLabel

if TYPE_CHECKING:  # pragma: no cover
    from taskboard.models.column import BoardColumn
    from taskboard.models.label import Label
    from taskboard.models.user import User


class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in_progress"
    done = "done"
    archived = "archived"


class Task(SQLModel, table=True):
    """A card on the board; ``position`` is 1-based and contiguous within its column."""

    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("column_id", "position", name="uq_tasks_column_position"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    column_id: int = Field(
        sa_column=Column(Integer, ForeignKey("columns.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    title: str = Field(sa_column=Column(String(length=500), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    status: TaskStatus = Field(
        default=TaskStatus.todo,
        sa_column=Column(SQLEnum(TaskStatus, name="task_status"), nullable=False),
    )
    due_date: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    position: int = Field(sa_column=Column(Integer, nullable=False))
    creator_id: int = Field(
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
    )
    assignee_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True),
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    column: Optional["BoardColumn"] = Relationship(back_populates="tasks")
    creator: Optional["User"] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Task.creator_id]"},
    )
    assignee: Optional["User"] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Task.assignee_id]"},
    )
    labels: List["Label"] = Relationship(
        link_model=TaskLabel,
        sa_relationship_kwargs={"order_by": "Label.name"},
    )
