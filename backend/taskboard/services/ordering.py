"""Dense 1..N ordering of columns within a project and tasks within a column.

Every operation here follows the same shape: lock the scope's parent row,
load the scope's siblings ordered by ``(position, id)``, mutate that Python
list, then :func:`renumber` it. Renumbering writes in two phases so that the
``(scope, position)`` unique constraints never see a transient duplicate:
changed rows are first parked on distinct negative positions and flushed,
then given their final 1-based positions and flushed again.

Callers own the transaction. Nothing here commits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import BadInputError
from taskboard.models.column import BoardColumn
from taskboard.models.project import Project
from taskboard.models.task import Task

Positioned = Union[BoardColumn, Task]


@dataclass(frozen=True)
class OrderedScope:
    """One ordered collection: the rows of ``model`` whose ``scope_field`` equals ``scope_id``."""

    model: type[Any]
    scope_field: str
    scope_id: int
    parent_model: type[Any]

    @property
    def lock_key(self) -> tuple[str, int]:
        return (self.parent_model.__tablename__, self.scope_id)


def column_scope(project_id: int) -> OrderedScope:
    return OrderedScope(BoardColumn, "project_id", project_id, Project)


def task_scope(column_id: int) -> OrderedScope:
    return OrderedScope(Task, "column_id", column_id, BoardColumn)


def validate_insert_position(count: int, position: Any) -> int:
    """Accept a 1-based insert position in ``1..count+1``."""
    if isinstance(position, bool) or not isinstance(position, int):
        raise BadInputError("position must be an integer")
    if position < 1:
        raise BadInputError("position must be >= 1")
    if position > count + 1:
        raise BadInputError(f"position must be <= {count + 1}")
    return position


async def lock(session: AsyncSession, *scopes: OrderedScope) -> None:
    """Take row locks on the scopes' parent rows in a stable global order.

    Concurrent writers always acquire in ascending ``(table, id)`` order, so
    two cross-column moves in opposite directions cannot deadlock. Databases
    without ``FOR UPDATE`` support (SQLite) ignore the clause.
    """
    for table, scope_id in sorted({scope.lock_key for scope in scopes}):
        scope = next(item for item in scopes if item.lock_key == (table, scope_id))
        parent = scope.parent_model
        await session.exec(select(parent.id).where(parent.id == scope_id).with_for_update())


async def load(session: AsyncSession, scope: OrderedScope, *, for_update: bool = True) -> list[Any]:
    """Siblings of ``scope`` in order, refreshed from the store.

    Rows already in the session are overwritten with what the store holds
    now, so a position committed by another transaction while this one waited
    for the lock is never compared against a stale in-memory value.
    """
    if for_update:
        await lock(session, scope)
    model = scope.model
    stmt = (
        select(model)
        .where(getattr(model, scope.scope_field) == scope.scope_id)
        .order_by(model.position.asc(), model.id.asc())
        .execution_options(populate_existing=True)
    )
    result = await session.exec(stmt)
    return list(result.all())


async def renumber(session: AsyncSession, *collections: tuple[OrderedScope, list[Any]]) -> None:
    """Persist each list's order as positions 1..N, touching only rows that change."""
    changed: list[tuple[Any, int]] = []
    for scope, items in collections:
        for index, item in enumerate(items, start=1):
            in_scope = getattr(item, scope.scope_field, None) == scope.scope_id
            if item.id is None or not in_scope or item.position != index:
                setattr(item, scope.scope_field, scope.scope_id)
                changed.append((item, index))
    if not changed:
        return

    for parked, (item, _) in enumerate(changed, start=1):
        item.position = -parked
        session.add(item)
    await session.flush()

    for item, index in changed:
        item.position = index
    await session.flush()


async def append(session: AsyncSession, scope: OrderedScope, entity: Positioned) -> Positioned:
    """Place ``entity`` at max+1; siblings keep their positions."""
    await lock(session, scope)
    model = scope.model
    stmt = select(func.coalesce(func.max(model.position), 0)).where(
        getattr(model, scope.scope_field) == scope.scope_id
    )
    max_position = (await session.exec(stmt)).one()
    setattr(entity, scope.scope_field, scope.scope_id)
    entity.position = max_position + 1
    session.add(entity)
    await session.flush()
    return entity


async def insert_at(session: AsyncSession, scope: OrderedScope, entity: Positioned, position: int) -> Positioned:
    """Insert ``entity`` at ``position``; siblings at or after it shift down by one."""
    items = await load(session, scope)
    validate_insert_position(len(items), position)
    items.insert(position - 1, entity)
    await renumber(session, (scope, items))
    return entity


async def remove(session: AsyncSession, scope: OrderedScope, entity: Positioned) -> None:
    """Delete ``entity`` and close the gap it leaves."""
    items = await load(session, scope)
    remaining = [item for item in items if item.id != entity.id]
    if len(remaining) == len(items):
        raise ValueError(f"{scope.model.__name__} {entity.id} is not in scope {scope.scope_id}")
    await session.delete(entity)
    await session.flush()
    await renumber(session, (scope, remaining))


async def move(
    session: AsyncSession,
    entity: Positioned,
    source: OrderedScope,
    target: OrderedScope,
    position: int,
) -> Positioned:
    """Move ``entity`` from ``source`` to ``position`` in ``target``.

    ``position`` is validated against the target's current size, so for a
    move within one scope ``count + 1`` is accepted and lands at the tail.
    """
    await lock(session, source, target)
    source_items = await load(session, source, for_update=False)
    if all(item.id != entity.id for item in source_items):
        raise ValueError(f"{source.model.__name__} {entity.id} is not in scope {source.scope_id}")

    same_scope = source.lock_key == target.lock_key
    if same_scope:
        target_items = source_items
    else:
        target_items = await load(session, target, for_update=False)
    validate_insert_position(len(target_items), position)

    source_items[:] = [item for item in source_items if item.id != entity.id]
    target_items.insert(min(position - 1, len(target_items)), entity)

    if same_scope:
        await renumber(session, (target, target_items))
    else:
        await renumber(session, (source, source_items), (target, target_items))
    return entity
