"""
Test data factories for creating database models.

Each factory accepts overrides for any field and commits by default so the
rows are visible to API requests made through the test client.
"""

from itertools import count
from typing import Any, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.config import settings
from taskboard.core.security import create_access_token, get_password_hash
from taskboard.models.column import BoardColumn
from taskboard.models.label import Label
from taskboard.models.project import Project, ProjectMember, ProjectRole
from taskboard.models.task import Task, TaskStatus
from taskboard.models.user import User, UserProfile, UserRole
from taskboard.services import ordering

DEFAULT_PASSWORD = "testpassword123"

_sequence = count(1)


async def create_user(
    session: AsyncSession,
    commit: bool = True,
    **overrides: Any,
) -> User:
    """
    Create a test user with a profile.

    Example:
        admin = await create_user(session, role=UserRole.admin)
    """
    n = next(_sequence)
    display_name = overrides.pop("display_name", f"Test User {n}")
    password = overrides.pop("password", DEFAULT_PASSWORD)
    defaults = {
        "email": f"user-{n}@example.com",
        "hashed_password": get_password_hash(password),
        "role": UserRole.user,
    }
    user = User(**{**defaults, **overrides})
    user.email = user.email.strip().lower()
    user.profile = UserProfile(display_name=display_name)
    session.add(user)
    await session.flush()

    if commit:
        await session.commit()
    return user


async def create_project(
    session: AsyncSession,
    owner: User,
    commit: bool = True,
    **overrides: Any,
) -> Project:
    """Create a project owned by ``owner`` with the default columns."""
    defaults = {"name": f"Project {next(_sequence)}", "owner_id": owner.id}
    project = Project(**{**defaults, **overrides})
    session.add(project)
    await session.flush()

    session.add(ProjectMember(project_id=project.id, user_id=owner.id, role=ProjectRole.owner))
    for index, title in enumerate(settings.DEFAULT_COLUMN_TITLES, start=1):
        session.add(BoardColumn(project_id=project.id, title=title, position=index))
    await session.flush()

    if commit:
        await session.commit()
    return project


async def add_member(
    session: AsyncSession,
    project: Project,
    user: User,
    role: ProjectRole = ProjectRole.member,
    commit: bool = True,
) -> ProjectMember:
    membership = ProjectMember(project_id=project.id, user_id=user.id, role=role)
    session.add(membership)
    await session.flush()
    if commit:
        await session.commit()
    return membership


async def create_column(
    session: AsyncSession,
    project: Project,
    commit: bool = True,
    **overrides: Any,
) -> BoardColumn:
    """Append a column at the end of ``project``'s board."""

    column = BoardColumn(title=overrides.pop("title", f"Column {next(_sequence)}"), **overrides)
    await ordering.append(session, ordering.column_scope(project.id), column)
    if commit:
        await session.commit()
    return column


async def get_columns(session: AsyncSession, project: Project) -> list[BoardColumn]:
    return await ordering.load(session, ordering.column_scope(project.id), for_update=False)


async def create_task(
    session: AsyncSession,
    column: BoardColumn,
    creator: User,
    commit: bool = True,
    assignee: Optional[User] = None,
    **overrides: Any,
) -> Task:
    """Append a task at the bottom of ``column``."""

    defaults = {
        "title": f"Task {next(_sequence)}",
        "status": TaskStatus.todo,
        "creator_id": creator.id,
        "assignee_id": assignee.id if assignee else None,
    }
    task = Task(**{**defaults, **overrides})
    await ordering.append(session, ordering.task_scope(column.id), task)
    if commit:
        await session.commit()
    return task


async def create_label(
    session: AsyncSession,
    project: Project,
    commit: bool = True,
    **overrides: Any,
) -> Label:
    defaults = {"name": f"label-{next(_sequence)}", "color": "#3366FF", "project_id": project.id}
    label = Label(**{**defaults, **overrides})
    session.add(label)
    await session.flush()
    if commit:
        await session.commit()
    return label


def get_auth_token(user: User) -> str:
    """
    Generate a valid JWT access token for a user.

    Example:
        headers = {"Authorization": f"Bearer {get_auth_token(user)}"}
    """
    return create_access_token(user.id, user.role)


def get_auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {get_auth_token(user)}"}
