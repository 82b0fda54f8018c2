from __future__ import annotations

import re
from typing import Optional

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import BadInputError
from taskboard.core.security import Actor
from taskboard.db.query import apply_search, normalize_search, paginated_query
from taskboard.models.activity_log import ActivityAction
from taskboard.models.label import Label
from taskboard.services import audit, guards
from taskboard.services.guards import BoardAction

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
MAX_LABEL_NAME_LENGTH = 100


async def _name_taken(session: AsyncSession, project_id: int, name: str) -> bool:
    stmt = select(Label.id).where(Label.project_id == project_id, Label.name == name)
    return (await session.exec(stmt)).first() is not None


async def create_label(
    session: AsyncSession,
    actor: Optional[Actor],
    *,
    project_id: int,
    name: str,
    color: Optional[str] = None,
) -> Label:
    actor = await guards.authorize(session, actor, BoardAction.create_label, project_id)
    name = (name or "").strip()
    if not name:
        raise BadInputError("Label name is required")
    if len(name) > MAX_LABEL_NAME_LENGTH:
        raise BadInputError(f"Label name must be at most {MAX_LABEL_NAME_LENGTH} characters")
    if color is not None and not HEX_COLOR_RE.match(color):
        raise BadInputError("Color must look like #RRGGBB")
    if await _name_taken(session, project_id, name):
        raise BadInputError("Label name already exists in this project")

    label = Label(project_id=project_id, name=name, color=color)
    session.add(label)
    await session.flush()
    await audit.record(
        session,
        actor,
        ActivityAction.label_created,
        project_id,
        details={"labelId": label.id, "name": name},
    )
    return label


async def list_labels(
    session: AsyncSession,
    actor: Optional[Actor],
    project_id: int,
    *,
    offset: int = 0,
    limit: int = 20,
    search: Optional[str] = None,
) -> tuple[list[Label], int]:
    await guards.authorize(session, actor, BoardAction.list_labels, project_id)
    term = normalize_search(search)
    data_stmt = apply_search(select(Label).where(Label.project_id == project_id), Label.name, term)
    count_stmt = apply_search(
        select(func.count()).select_from(Label).where(Label.project_id == project_id),
        Label.name,
        term,
    )
    data_stmt = data_stmt.order_by(Label.name.asc(), Label.id.asc())
    return await paginated_query(session, data_stmt, count_stmt, offset, limit)
