from datetime import datetime, timezone
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from taskboard.models.project import Project
    from taskboard.models.task import Task


class BoardColumn(SQLModel, table=True):
    """A board column; ``position`` is 1-based and contiguous within its project."""

    __tablename__ = "columns"
    __table_args__ = (
        UniqueConstraint("project_id", "position", name="uq_columns_project_position"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(
        sa_column=Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    title: str = Field(sa_column=Column(String(length=200), nullable=False))
    position: int = Field(sa_column=Column(Integer, nullable=False))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    project: Optional["Project"] = Relationship(back_populates="columns")
    tasks: List["Task"] = Relationship(
        back_populates="column",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Task.position"},
    )
