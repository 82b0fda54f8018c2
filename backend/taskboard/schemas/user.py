from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr

from taskboard.models.user import UserRole


class UserProfileRead(BaseModel):
    display_name: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    """Public user information exposed to other project members"""
    id: int
    email: EmailStr
    role: UserRole
    profile: Optional[UserProfileRead] = None

    class Config:
        from_attributes = True


class UserRead(UserSummary):
    created_at: datetime
    updated_at: datetime
