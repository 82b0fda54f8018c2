from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from taskboard.models.activity_log import ActivityAction
from taskboard.schemas.task import TaskSummary
from taskboard.schemas.user import UserSummary


class ActivityLogRead(BaseModel):
    id: int
    project_id: int
    actor_id: int
    task_id: Optional[int] = None
    action: ActivityAction
    details: Optional[dict[str, Any]] = None
    created_at: datetime
    actor: Optional[UserSummary] = None
    task: Optional[TaskSummary] = None

    class Config:
        from_attributes = True
