from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from taskboard.models.invitation import InvitationStatus
from taskboard.schemas.project import ProjectSummary
from taskboard.schemas.user import UserSummary


class InvitationCreate(BaseModel):
    email: EmailStr


class InvitationAccept(BaseModel):
    token: str = Field(min_length=1, max_length=128)


class InvitationRead(BaseModel):
    id: int
    project_id: int
    email: str
    token: str
    status: InvitationStatus
    invited_by_id: int
    accepted_by_id: Optional[int] = None
    accepted_at: Optional[datetime] = None
    created_at: datetime
    project: Optional[ProjectSummary] = None
    invited_by: Optional[UserSummary] = None

    class Config:
        from_attributes = True
