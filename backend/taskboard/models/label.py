from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlmodel import Field, SQLModel


class Label(SQLModel, table=True):
    """Project-scoped label; names are unique within a project."""

    __tablename__ = "labels"
    __table_args__ = (
        UniqueConstraint("project_id", "name", name="uq_labels_project_name"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(
        sa_column=Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    name: str = Field(sa_column=Column(String(length=100), nullable=False))
    color: Optional[str] = Field(default=None, sa_column=Column(String(length=7), nullable=True))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class TaskLabel(SQLModel, table=True):
    """Junction table linking tasks to labels."""

    __tablename__ = "task_labels"

    task_id: int = Field(
        sa_column=Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    )
    label_id: int = Field(
        sa_column=Column(Integer, ForeignKey("labels.id", ondelete="CASCADE"), primary_key=True, index=True),
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
