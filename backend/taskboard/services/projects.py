from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.config import settings
from taskboard.core.errors import BadInputError, NotFoundError
from taskboard.core.security import Actor
from taskboard.db.query import apply_search, normalize_search, paginated_query
from taskboard.models.activity_log import ActivityAction
from taskboard.models.column import BoardColumn
from taskboard.models.project import Project, ProjectMember, ProjectRole
from taskboard.services import audit, guards, ordering
from taskboard.services.guards import BoardAction

logger = logging.getLogger(__name__)


def _required_text(value: Optional[str], message: str) -> str:
    normalized = (value or "").strip()
    if not normalized:
        raise BadInputError(message)
    return normalized


async def create_project(session: AsyncSession, actor: Optional[Actor], *, name: str) -> Project:
    """Create a project with its default columns; the creator becomes its owner."""
    actor = await guards.authorize(session, actor, BoardAction.create_project)
    name = _required_text(name, "Project name is required")

    project = Project(name=name, owner_id=actor.id)
    session.add(project)
    await session.flush()

    session.add(ProjectMember(project_id=project.id, user_id=actor.id, role=ProjectRole.owner))
    session.add_all(
        BoardColumn(project_id=project.id, title=title, position=index)
        for index, title in enumerate(settings.DEFAULT_COLUMN_TITLES, start=1)
    )
    await session.flush()

    await audit.record(session, actor, ActivityAction.project_created, project.id, details={"name": name})
    return project


async def create_column(
    session: AsyncSession,
    actor: Optional[Actor],
    *,
    project_id: int,
    title: str,
    position: int,
) -> BoardColumn:
    actor = await guards.authorize(session, actor, BoardAction.create_column, project_id)
    title = _required_text(title, "Column title is required")

    column = BoardColumn(title=title)
    await ordering.insert_at(session, ordering.column_scope(project_id), column, position)
    await audit.record(
        session,
        actor,
        ActivityAction.column_created,
        project_id,
        details={"columnId": column.id, "title": title, "position": column.position},
    )
    return column


async def load_project(session: AsyncSession, project_id: int) -> Project:
    """Fetch a project with owner and ordered columns ready for serialization."""
    stmt = (
        select(Project)
        .where(Project.id == project_id)
        .options(selectinload(Project.owner), selectinload(Project.columns))
        .execution_options(populate_existing=True)
    )
    project = (await session.exec(stmt)).one_or_none()
    if project is None:
        raise NotFoundError("Project not found")
    return project


async def get_project(session: AsyncSession, actor: Optional[Actor], project_id: int) -> Project:
    await guards.authorize(session, actor, BoardAction.view_project, project_id)
    return await load_project(session, project_id)


async def list_projects(
    session: AsyncSession,
    actor: Optional[Actor],
    *,
    offset: int = 0,
    limit: int = 20,
    search: Optional[str] = None,
) -> tuple[list[Project], int]:
    """Projects the actor belongs to; admins see every project."""
    actor = await guards.authorize(session, actor, BoardAction.list_projects)
    term = normalize_search(search)

    data_stmt = select(Project).options(selectinload(Project.owner))
    count_stmt = select(func.count()).select_from(Project)
    if not actor.is_admin:
        data_stmt = data_stmt.join(ProjectMember, ProjectMember.project_id == Project.id).where(
            ProjectMember.user_id == actor.id
        )
        count_stmt = count_stmt.join(ProjectMember, ProjectMember.project_id == Project.id).where(
            ProjectMember.user_id == actor.id
        )
    data_stmt = apply_search(data_stmt, Project.name, term)
    count_stmt = apply_search(count_stmt, Project.name, term)
    data_stmt = data_stmt.order_by(Project.created_at.desc(), Project.id.desc())
    return await paginated_query(session, data_stmt, count_stmt, offset, limit)


async def list_members(
    session: AsyncSession,
    actor: Optional[Actor],
    project_id: int,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[ProjectMember], int]:
    await guards.authorize(session, actor, BoardAction.list_members, project_id)
    data_stmt = (
        select(ProjectMember)
        .where(ProjectMember.project_id == project_id)
        .options(selectinload(ProjectMember.user))
        .order_by(ProjectMember.joined_at.asc(), ProjectMember.user_id.asc())
    )
    count_stmt = select(func.count()).select_from(ProjectMember).where(ProjectMember.project_id == project_id)
    return await paginated_query(session, data_stmt, count_stmt, offset, limit)


async def list_activity(
    session: AsyncSession,
    actor: Optional[Actor],
    project_id: int,
    *,
    offset: int = 0,
    limit: int = 20,
):
    await guards.authorize(session, actor, BoardAction.view_activity, project_id)
    return await audit.list_activity(session, project_id, offset=offset, limit=limit)
