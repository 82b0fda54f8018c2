"""Import all models for Alembic or metadata creation."""

from taskboard.models.activity_log import ActivityLog
from taskboard.models.column import BoardColumn
from taskboard.models.comment import Comment
from taskboard.models.invitation import Invitation
from taskboard.models.label import Label, TaskLabel
from taskboard.models.project import Project, ProjectMember
from taskboard.models.task import Task
from taskboard.models.user import User, UserProfile

__all__ = [
    "User",
    "UserProfile",
    "Project",
    "ProjectMember",
    "BoardColumn",
    "Task",
    "Label",
    "TaskLabel",
    "Comment",
    "Invitation",
    "ActivityLog",
]
