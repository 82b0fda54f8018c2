import logging
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.security import Actor
from taskboard.db.query import paginated_query
from taskboard.models.activity_log import ActivityAction, ActivityLog

logger = logging.getLogger(__name__)


async def record(
    session: AsyncSession,
    actor: Actor,
    action: ActivityAction,
    project_id: int,
    *,
    task_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
) -> ActivityLog:
    """Stage an activity row in the caller's transaction.

    The row commits or rolls back together with the mutation it describes.
    """
    entry = ActivityLog(
        project_id=project_id,
        actor_id=actor.id,
        task_id=task_id,
        action=action.value,
        details=details,
    )
    session.add(entry)
    await session.flush()
    logger.info("%s by user %s on project %s", action.value, actor.id, project_id)
    return entry


async def list_activity(
    session: AsyncSession,
    project_id: int,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[ActivityLog], int]:
    data_stmt = (
        select(ActivityLog)
        .where(ActivityLog.project_id == project_id)
        .options(selectinload(ActivityLog.actor), selectinload(ActivityLog.task))
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
    )
    count_stmt = select(func.count()).select_from(ActivityLog).where(ActivityLog.project_id == project_id)
    return await paginated_query(session, data_stmt, count_stmt, offset, limit)
