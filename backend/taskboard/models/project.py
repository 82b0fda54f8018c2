from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlmodel import Enum as SQLEnum, Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover - imported lazily for type checking only
    from taskboard.models.column import BoardColumn
    from taskboard.models.user import User


class ProjectRole(str, Enum):
    owner = "owner"
    member = "member"


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False)
    owner_id: int = Field(
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    owner: Optional["User"] = Relationship()
    members: List["ProjectMember"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    columns: List["BoardColumn"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "BoardColumn.position",
        },
    )


class ProjectMember(SQLModel, table=True):
    __tablename__ = "project_members"

    project_id: int = Field(
        sa_column=Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    )
    user_id: int = Field(
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )
    role: ProjectRole = Field(
        default=ProjectRole.member,
        sa_column=Column(SQLEnum(ProjectRole, name="project_role"), nullable=False),
    )
    joined_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    project: Optional[Project] = Relationship(back_populates="members")
    user: Optional["User"] = Relationship(back_populates="memberships")
