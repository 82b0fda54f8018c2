from datetime import datetime, timezone
from enum import Enum
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlmodel import Enum as SQLEnum, Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from taskboard.models.project import Project
    from taskboard.models.user import User


class InvitationStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    revoked = "revoked"


class Invitation(SQLModel, table=True):
    __tablename__ = "invitations"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(
        sa_column=Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    email: str = Field(sa_column=Column(String(length=320), nullable=False))
    token: str = Field(index=True, unique=True, nullable=False, max_length=128)
    status: InvitationStatus = Field(
        default=InvitationStatus.pending,
        sa_column=Column(SQLEnum(InvitationStatus, name="invitation_status"), nullable=False),
    )
    invited_by_id: int = Field(
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    )
    accepted_by_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    accepted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    project: Optional["Project"] = Relationship()
    invited_by: Optional["User"] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Invitation.invited_by_id]"},
    )
