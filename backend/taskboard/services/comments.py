from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import BadInputError
from taskboard.core.security import Actor
from taskboard.db.query import paginated_query
from taskboard.models.activity_log import ActivityAction
from taskboard.models.comment import Comment
from taskboard.services import audit, guards
from taskboard.services.guards import BoardAction


async def comment_task(session: AsyncSession, actor: Optional[Actor], task_id: int, *, content: str) -> Comment:
    actor, project_id = await guards.authorize_task(session, actor, BoardAction.comment_task, task_id)
    content = (content or "").strip()
    if not content:
        raise BadInputError("Content is required")

    comment = Comment(task_id=task_id, author_id=actor.id, content=content)
    session.add(comment)
    await session.flush()
    await audit.record(
        session,
        actor,
        ActivityAction.comment_added,
        project_id,
        task_id=task_id,
        details={"commentId": comment.id},
    )
    return comment


async def load_comment(session: AsyncSession, comment_id: int) -> Comment:
    stmt = (
        select(Comment)
        .where(Comment.id == comment_id)
        .options(selectinload(Comment.author))
        .execution_options(populate_existing=True)
    )
    return (await session.exec(stmt)).one()


async def list_comments(
    session: AsyncSession,
    actor: Optional[Actor],
    task_id: int,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Comment], int]:
    """Newest first."""
    await guards.authorize_task(session, actor, BoardAction.list_comments, task_id)
    data_stmt = (
        select(Comment)
        .where(Comment.task_id == task_id)
        .options(selectinload(Comment.author))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    count_stmt = select(func.count()).select_from(Comment).where(Comment.task_id == task_id)
    return await paginated_query(session, data_stmt, count_stmt, offset, limit)
