from fastapi import APIRouter, status
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.api.deps import ActorDep, PaginationDep, SessionDep
from taskboard.db.query import build_paginated_response
from taskboard.models.task import Task
from taskboard.schemas.comment import CommentCreate, CommentRead
from taskboard.schemas.query import PaginatedResponse
from taskboard.schemas.task import TaskAssignRequest, TaskCreate, TaskMoveRequest, TaskRead, TaskUpdate
from taskboard.services import comments as comments_service
from taskboard.services import tasks as tasks_service
from taskboard.services.transactions import run_unit_of_work

router = APIRouter()


async def serialize_tasks(session: AsyncSession, tasks: list[Task]) -> list[TaskRead]:
    counts = await tasks_service.comment_counts(session, [task.id for task in tasks])
    return [
        TaskRead.model_validate(task).model_copy(update={"comment_count": counts.get(task.id, 0)})
        for task in tasks
    ]


async def task_page(
    session: AsyncSession,
    tasks: list[Task],
    total: int,
    offset: int,
    limit: int,
) -> PaginatedResponse[TaskRead]:
    items = await serialize_tasks(session, tasks)
    return PaginatedResponse[TaskRead](**build_paginated_response(items, total, offset, limit))


async def _task_read(session: AsyncSession, task_id: int) -> TaskRead:
    task = await tasks_service.load_task(session, task_id)
    return (await serialize_tasks(session, [task]))[0]


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(task_in: TaskCreate, session: SessionDep, actor: ActorDep) -> TaskRead:
    task = await run_unit_of_work(
        session,
        lambda: tasks_service.create_task(
            session,
            actor,
            column_id=task_in.column_id,
            title=task_in.title,
            description=task_in.description,
            due_date=task_in.due_date,
            assignee_id=task_in.assignee_id,
        ),
    )
    return await _task_read(session, task.id)


@router.get("/{task_id}", response_model=TaskRead)
async def read_task(task_id: int, session: SessionDep, actor: ActorDep) -> TaskRead:
    task = await tasks_service.get_task(session, actor, task_id)
    return (await serialize_tasks(session, [task]))[0]


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(task_id: int, task_in: TaskUpdate, session: SessionDep, actor: ActorDep) -> TaskRead:
    changes = task_in.model_dump(exclude_unset=True)
    await run_unit_of_work(
        session,
        lambda: tasks_service.update_task(session, actor, task_id, changes=changes),
    )
    return await _task_read(session, task_id)


@router.post("/{task_id}/move", response_model=TaskRead)
async def move_task(task_id: int, move_in: TaskMoveRequest, session: SessionDep, actor: ActorDep) -> TaskRead:
    await run_unit_of_work(
        session,
        lambda: tasks_service.move_task(
            session,
            actor,
            task_id,
            to_column_id=move_in.to_column_id,
            to_position=move_in.to_position,
        ),
    )
    return await _task_read(session, task_id)


@router.put("/{task_id}/assignee", response_model=TaskRead)
async def assign_task(task_id: int, assign_in: TaskAssignRequest, session: SessionDep, actor: ActorDep) -> TaskRead:
    await run_unit_of_work(
        session,
        lambda: tasks_service.assign_task(session, actor, task_id, assignee_id=assign_in.assignee_id),
    )
    return await _task_read(session, task_id)


@router.put("/{task_id}/labels/{label_id}", response_model=TaskRead)
async def add_label_to_task(task_id: int, label_id: int, session: SessionDep, actor: ActorDep) -> TaskRead:
    await run_unit_of_work(
        session,
        lambda: tasks_service.add_label(session, actor, task_id, label_id=label_id),
    )
    return await _task_read(session, task_id)


@router.delete("/{task_id}/labels/{label_id}", response_model=TaskRead)
async def remove_label_from_task(task_id: int, label_id: int, session: SessionDep, actor: ActorDep) -> TaskRead:
    await run_unit_of_work(
        session,
        lambda: tasks_service.remove_label(session, actor, task_id, label_id=label_id),
    )
    return await _task_read(session, task_id)


@router.post("/{task_id}/comments", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def comment_task(
    task_id: int,
    comment_in: CommentCreate,
    session: SessionDep,
    actor: ActorDep,
) -> CommentRead:
    comment = await run_unit_of_work(
        session,
        lambda: comments_service.comment_task(session, actor, task_id, content=comment_in.content),
    )
    comment = await comments_service.load_comment(session, comment.id)
    return CommentRead.model_validate(comment)


@router.get("/{task_id}/comments", response_model=PaginatedResponse[CommentRead])
async def list_comments(
    task_id: int,
    session: SessionDep,
    actor: ActorDep,
    pagination: PaginationDep,
) -> PaginatedResponse[CommentRead]:
    comments, total = await comments_service.list_comments(
        session,
        actor,
        task_id,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    items = [CommentRead.model_validate(comment) for comment in comments]
    return PaginatedResponse[CommentRead](
        **build_paginated_response(items, total, pagination.offset, pagination.limit)
    )
