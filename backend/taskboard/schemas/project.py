from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from taskboard.models.project import ProjectRole
from taskboard.schemas.user import UserSummary


def _required_text(value: str, label: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{label} is required")
    return normalized


class ProjectCreate(BaseModel):
    name: str = Field(max_length=255)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _required_text(value, "Project name")


class ColumnCreate(BaseModel):
    title: str = Field(max_length=200)
    position: int = Field(ge=1)

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _required_text(value, "Column title")


class ColumnRead(BaseModel):
    id: int
    project_id: int
    title: str
    position: int
    created_at: datetime

    class Config:
        from_attributes = True


class ProjectSummary(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ProjectRead(ProjectSummary):
    owner_id: int
    created_at: datetime
    owner: Optional[UserSummary] = None


class ProjectDetail(ProjectRead):
    columns: List[ColumnRead] = Field(default_factory=list)


class ProjectMemberRead(BaseModel):
    project_id: int
    user_id: int
    role: ProjectRole
    joined_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True
