from typing import Optional

from fastapi import APIRouter, Query

from taskboard.api.deps import ActorDep, PaginationDep, SessionDep
from taskboard.api.v1.endpoints.tasks import task_page
from taskboard.models.task import TaskStatus
from taskboard.schemas.query import PaginatedResponse
from taskboard.schemas.task import TaskRead
from taskboard.services import tasks as tasks_service

router = APIRouter()


@router.get("/{column_id}/tasks", response_model=PaginatedResponse[TaskRead])
async def list_column_tasks(
    column_id: int,
    session: SessionDep,
    actor: ActorDep,
    pagination: PaginationDep,
    task_status: Optional[TaskStatus] = Query(default=None, alias="status"),
    assignee_id: Optional[int] = Query(default=None),
) -> PaginatedResponse[TaskRead]:
    tasks, total = await tasks_service.list_column_tasks(
        session,
        actor,
        column_id,
        offset=pagination.offset,
        limit=pagination.limit,
        status=task_status,
        assignee_id=assignee_id,
    )
    return await task_page(session, tasks, total, pagination.offset, pagination.limit)
