from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class LabelCreate(BaseModel):
    name: str = Field(max_length=100)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Label name is required")
        return normalized


class LabelRead(BaseModel):
    id: int
    project_id: int
    name: str
    color: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
