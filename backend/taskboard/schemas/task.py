from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from taskboard.models.task import TaskStatus
from taskboard.schemas.label import LabelRead
from taskboard.schemas.project import ColumnRead
from taskboard.schemas.user import UserSummary


class TaskCreate(BaseModel):
    column_id: int = Field(gt=0)
    title: str = Field(max_length=500)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[int] = Field(default=None, gt=0)

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Title is required")
        return normalized


class TaskUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied."""
    title: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: Optional[TaskStatus] = None


class TaskMoveRequest(BaseModel):
    to_column_id: int = Field(gt=0)
    to_position: int = Field(ge=1)


class TaskAssignRequest(BaseModel):
    assignee_id: Optional[int] = Field(default=None, gt=0)


class TaskSummary(BaseModel):
    id: int
    title: str

    class Config:
        from_attributes = True


class TaskRead(TaskSummary):
    column_id: int
    description: Optional[str] = None
    status: TaskStatus
    due_date: Optional[datetime] = None
    position: int
    creator_id: int
    assignee_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    column: Optional[ColumnRead] = None
    creator: Optional[UserSummary] = None
    assignee: Optional[UserSummary] = None
    labels: List[LabelRead] = Field(default_factory=list)
    comment_count: int = 0
