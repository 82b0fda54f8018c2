from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.config import settings
from taskboard.core.errors import BadInputError, ForbiddenError, NotFoundError, StoreContentionError
from taskboard.core.security import Actor
from taskboard.db.query import paginated_query
from taskboard.models.activity_log import ActivityAction
from taskboard.models.column import BoardColumn
from taskboard.models.comment import Comment
from taskboard.models.label import Label, TaskLabel
from taskboard.models.task import Task, TaskStatus
from taskboard.models.user import User
from taskboard.services import audit, guards, ordering
from taskboard.services.guards import BoardAction

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "due_date", "status")


def _normalize_title(value: Optional[str]) -> str:
    title = (value or "").strip()
    if not title:
        raise BadInputError("Title is required")
    return title


def _normalize_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


async def _get_task(session: AsyncSession, task_id: int) -> Task:
    task = await session.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task not found")
    return task


async def _reload_task(session: AsyncSession, task_id: int) -> Task:
    stmt = select(Task).where(Task.id == task_id).execution_options(populate_existing=True)
    task = (await session.exec(stmt)).one_or_none()
    if task is None:
        raise NotFoundError("Task not found")
    return task


async def _lock_task_columns(session: AsyncSession, task_id: int, to_column_id: int) -> Task:
    """Lock the task's current column and ``to_column_id``, then return the task as stored.

    The task may change column between reading it and acquiring the locks, so
    its column is re-read under the locks until it is one that is held.
    """
    task = await _reload_task(session, task_id)
    locked: set[int] = set()
    for _ in range(settings.POSITION_SHIFT_MAX_ATTEMPTS):
        wanted = {task.column_id, to_column_id}
        await ordering.lock(session, *(ordering.task_scope(column_id) for column_id in wanted - locked))
        locked |= wanted
        task = await _reload_task(session, task_id)
        if task.column_id in locked:
            return task
    raise StoreContentionError()


async def _ensure_assignable(
    session: AsyncSession,
    actor: Actor,
    *,
    project_id: int,
    assignee_id: Optional[int],
) -> None:
    """Only project members may hold tasks, unless an admin assigns them."""
    if assignee_id is None:
        return
    if await session.get(User, assignee_id) is None:
        raise NotFoundError("Assignee not found")
    if actor.is_admin:
        return
    role = await guards.get_membership_role(session, project_id=project_id, user_id=assignee_id)
    if role is None:
        raise ForbiddenError("Assignee must be a project member")


async def create_task(
    session: AsyncSession,
    actor: Optional[Actor],
    *,
    column_id: int,
    title: str,
    description: Optional[str] = None,
    due_date: Optional[datetime] = None,
    assignee_id: Optional[int] = None,
) -> Task:
    actor, project_id = await guards.authorize_column(session, actor, BoardAction.create_task, column_id)
    title = _normalize_title(title)
    await _ensure_assignable(session, actor, project_id=project_id, assignee_id=assignee_id)

    task = Task(
        title=title,
        description=_normalize_description(description),
        due_date=due_date,
        status=TaskStatus.todo,
        creator_id=actor.id,
        assignee_id=assignee_id,
    )
    await ordering.append(session, ordering.task_scope(column_id), task)
    await audit.record(
        session,
        actor,
        ActivityAction.task_created,
        project_id,
        task_id=task.id,
        details={"title": title, "columnId": column_id},
    )
    return task


async def update_task(
    session: AsyncSession,
    actor: Optional[Actor],
    task_id: int,
    *,
    changes: dict[str, Any],
) -> Task:
    """Apply a partial update; ``changes`` holds only the fields the caller sent."""
    actor, project_id = await guards.authorize_task(session, actor, BoardAction.update_task, task_id)
    changes = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    if not changes:
        raise BadInputError("No changes supplied")

    task = await _get_task(session, task_id)
    if "title" in changes:
        task.title = _normalize_title(changes["title"])
    if "description" in changes:
        task.description = _normalize_description(changes["description"])
    if "due_date" in changes:
        task.due_date = changes["due_date"]
    if "status" in changes:
        if changes["status"] is None:
            raise BadInputError("Status cannot be null")
        task.status = TaskStatus(changes["status"])
    task.updated_at = datetime.now(timezone.utc)
    session.add(task)
    await session.flush()

    await audit.record(
        session,
        actor,
        ActivityAction.task_updated,
        project_id,
        task_id=task.id,
        details={"changes": sorted(changes)},
    )
    return task


async def move_task(
    session: AsyncSession,
    actor: Optional[Actor],
    task_id: int,
    *,
    to_column_id: int,
    to_position: int,
) -> Task:
    """Move a task to ``to_position`` in ``to_column_id``, which may be its own column.

    Moves never cross projects. Both columns are renumbered densely and the
    move is audited in the same transaction.
    """
    actor, source_project_id, target_project_id = await guards.run_guards(
        lambda: guards.require_authenticated(actor),
        lambda: guards.project_id_for_task(session, task_id),
        lambda: guards.project_id_for_column(session, to_column_id),
    )
    if source_project_id != target_project_id:
        raise ForbiddenError("Cannot move task to another project")
    await guards.authorize(session, actor, BoardAction.move_task, source_project_id)

    task = await _lock_task_columns(session, task_id, to_column_id)
    from_column_id = task.column_id
    await ordering.move(
        session,
        task,
        ordering.task_scope(from_column_id),
        ordering.task_scope(to_column_id),
        to_position,
    )
    task.updated_at = datetime.now(timezone.utc)
    session.add(task)
    await session.flush()

    await audit.record(
        session,
        actor,
        ActivityAction.task_moved,
        source_project_id,
        task_id=task.id,
        details={"fromColumnId": from_column_id, "toColumnId": to_column_id, "toPosition": task.position},
    )
    return task


async def assign_task(
    session: AsyncSession,
    actor: Optional[Actor],
    task_id: int,
    *,
    assignee_id: Optional[int],
) -> Task:
    """Set or clear the assignee."""
    actor, project_id = await guards.authorize_task(session, actor, BoardAction.assign_task, task_id)
    await _ensure_assignable(session, actor, project_id=project_id, assignee_id=assignee_id)

    task = await _get_task(session, task_id)
    task.assignee_id = assignee_id
    task.updated_at = datetime.now(timezone.utc)
    session.add(task)
    await session.flush()

    await audit.record(
        session,
        actor,
        ActivityAction.task_assigned,
        project_id,
        task_id=task.id,
        details={"assigneeId": assignee_id},
    )
    return task


async def add_label(session: AsyncSession, actor: Optional[Actor], task_id: int, *, label_id: int) -> Task:
    """Attach a label from the task's own project; attaching twice changes nothing."""
    actor, project_id = await guards.authorize_task(session, actor, BoardAction.add_label_to_task, task_id)
    label = await session.get(Label, label_id)
    if label is None:
        raise NotFoundError("Label not found")
    if label.project_id != project_id:
        raise ForbiddenError("Label does not belong to this project")

    task = await _get_task(session, task_id)
    if await session.get(TaskLabel, (task_id, label_id)) is None:
        session.add(TaskLabel(task_id=task_id, label_id=label_id))
        await session.flush()
        await audit.record(
            session,
            actor,
            ActivityAction.label_added_to_task,
            project_id,
            task_id=task_id,
            details={"labelId": label_id},
        )
    return task


async def remove_label(session: AsyncSession, actor: Optional[Actor], task_id: int, *, label_id: int) -> Task:
    actor, project_id = await guards.authorize_task(session, actor, BoardAction.remove_label_from_task, task_id)
    label = await session.get(Label, label_id)
    if label is None:
        raise NotFoundError("Label not found")
    if label.project_id != project_id:
        raise ForbiddenError("Label does not belong to this project")

    task = await _get_task(session, task_id)
    link = await session.get(TaskLabel, (task_id, label_id))
    if link is not None:
        await session.delete(link)
        await session.flush()
        await audit.record(
            session,
            actor,
            ActivityAction.label_removed_from_task,
            project_id,
            task_id=task_id,
            details={"labelId": label_id},
        )
    return task


def _detail_options() -> list[Any]:
    return [
        selectinload(Task.column),
        selectinload(Task.creator),
        selectinload(Task.assignee),
        selectinload(Task.labels),
    ]


async def load_task(session: AsyncSession, task_id: int) -> Task:
    """Fetch a task with everything its read model needs, bypassing stale identity-map state."""
    stmt = (
        select(Task)
        .where(Task.id == task_id)
        .options(*_detail_options())
        .execution_options(populate_existing=True)
    )
    task = (await session.exec(stmt)).one_or_none()
    if task is None:
        raise NotFoundError("Task not found")
    return task


async def comment_counts(session: AsyncSession, task_ids: list[int]) -> dict[int, int]:
    if not task_ids:
        return {}
    stmt = (
        select(Comment.task_id, func.count(Comment.id))
        .where(Comment.task_id.in_(task_ids))
        .group_by(Comment.task_id)
    )
    result = await session.exec(stmt)
    return {task_id: total for task_id, total in result.all()}


async def get_task(session: AsyncSession, actor: Optional[Actor], task_id: int) -> Task:
    await guards.authorize_task(session, actor, BoardAction.view_task, task_id)
    return await load_task(session, task_id)


async def list_project_tasks(
    session: AsyncSession,
    actor: Optional[Actor],
    project_id: int,
    *,
    offset: int = 0,
    limit: int = 20,
    status: Optional[TaskStatus] = None,
    assignee_id: Optional[int] = None,
) -> tuple[list[Task], int]:
    """Tasks of a project in board order: column position, then task position."""
    await guards.authorize(session, actor, BoardAction.list_tasks, project_id)
    filters = [BoardColumn.project_id == project_id]
    if status is not None:
        filters.append(Task.status == status)
    if assignee_id is not None:
        filters.append(Task.assignee_id == assignee_id)

    data_stmt = (
        select(Task)
        .join(BoardColumn, BoardColumn.id == Task.column_id)
        .where(*filters)
        .options(*_detail_options())
        .order_by(BoardColumn.position.asc(), Task.position.asc(), Task.id.asc())
    )
    count_stmt = (
        select(func.count())
        .select_from(Task)
        .join(BoardColumn, BoardColumn.id == Task.column_id)
        .where(*filters)
    )
    return await paginated_query(session, data_stmt, count_stmt, offset, limit)


async def list_column_tasks(
    session: AsyncSession,
    actor: Optional[Actor],
    column_id: int,
    *,
    offset: int = 0,
    limit: int = 20,
    status: Optional[TaskStatus] = None,
    assignee_id: Optional[int] = None,
) -> tuple[list[Task], int]:
    await guards.authorize_column(session, actor, BoardAction.list_tasks, column_id)
    filters = [Task.column_id == column_id]
    if status is not None:
        filters.append(Task.status == status)
    if assignee_id is not None:
        filters.append(Task.assignee_id == assignee_id)

    data_stmt = (
        select(Task)
        .where(*filters)
        .options(*_detail_options())
        .order_by(Task.position.asc(), Task.id.asc())
    )
    count_stmt = select(func.count()).select_from(Task).where(*filters)
    return await paginated_query(session, data_stmt, count_stmt, offset, limit)
