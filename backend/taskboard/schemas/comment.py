from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from taskboard.schemas.user import UserSummary


class CommentCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Content is required")
        return normalized


class CommentRead(BaseModel):
    id: int
    task_id: int
    author_id: int
    content: str
    created_at: datetime
    author: Optional[UserSummary] = None

    class Config:
        from_attributes = True
