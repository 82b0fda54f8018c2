from typing import Optional

from fastapi import APIRouter, Query, status

from taskboard.api.deps import ActorDep, PaginationDep, SessionDep
from taskboard.api.v1.endpoints.tasks import task_page
from taskboard.db.query import build_paginated_response
from taskboard.models.project import Project
from taskboard.models.task import TaskStatus
from taskboard.schemas.activity import ActivityLogRead
from taskboard.schemas.invitation import InvitationCreate, InvitationRead
from taskboard.schemas.label import LabelCreate, LabelRead
from taskboard.schemas.project import ColumnCreate, ColumnRead, ProjectCreate, ProjectDetail, ProjectMemberRead, ProjectRead
from taskboard.schemas.query import PaginatedResponse
from taskboard.schemas.task import TaskRead
from taskboard.services import invitations as invitations_service
from taskboard.services import labels as labels_service
from taskboard.services import projects as projects_service
from taskboard.services import tasks as tasks_service
from taskboard.services.transactions import run_unit_of_work

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[ProjectRead])
async def list_projects(
    session: SessionDep,
    actor: ActorDep,
    pagination: PaginationDep,
    search: Optional[str] = Query(default=None),
) -> PaginatedResponse[ProjectRead]:
    projects, total = await projects_service.list_projects(
        session,
        actor,
        offset=pagination.offset,
        limit=pagination.limit,
        search=search,
    )
    items = [ProjectRead.model_validate(project) for project in projects]
    return PaginatedResponse[ProjectRead](
        **build_paginated_response(items, total, pagination.offset, pagination.limit)
    )


@router.post("/", response_model=ProjectDetail, status_code=status.HTTP_201_CREATED)
async def create_project(project_in: ProjectCreate, session: SessionDep, actor: ActorDep) -> Project:
    project = await run_unit_of_work(
        session,
        lambda: projects_service.create_project(session, actor, name=project_in.name),
    )
    return await projects_service.load_project(session, project.id)


@router.get("/{project_id}", response_model=ProjectDetail)
async def read_project(project_id: int, session: SessionDep, actor: ActorDep) -> Project:
    return await projects_service.get_project(session, actor, project_id)


@router.post("/{project_id}/columns", response_model=ColumnRead, status_code=status.HTTP_201_CREATED)
async def create_column(
    project_id: int,
    column_in: ColumnCreate,
    session: SessionDep,
    actor: ActorDep,
) -> ColumnRead:
    column = await run_unit_of_work(
        session,
        lambda: projects_service.create_column(
            session,
            actor,
            project_id=project_id,
            title=column_in.title,
            position=column_in.position,
        ),
    )
    return ColumnRead.model_validate(column)


@router.get("/{project_id}/members", response_model=PaginatedResponse[ProjectMemberRead])
async def list_members(
    project_id: int,
    session: SessionDep,
    actor: ActorDep,
    pagination: PaginationDep,
) -> PaginatedResponse[ProjectMemberRead]:
    members, total = await projects_service.list_members(
        session,
        actor,
        project_id,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    items = [ProjectMemberRead.model_validate(member) for member in members]
    return PaginatedResponse[ProjectMemberRead](
        **build_paginated_response(items, total, pagination.offset, pagination.limit)
    )


@router.get("/{project_id}/labels", response_model=PaginatedResponse[LabelRead])
async def list_labels(
    project_id: int,
    session: SessionDep,
    actor: ActorDep,
    pagination: PaginationDep,
    search: Optional[str] = Query(default=None),
) -> PaginatedResponse[LabelRead]:
    labels, total = await labels_service.list_labels(
        session,
        actor,
        project_id,
        offset=pagination.offset,
        limit=pagination.limit,
        search=search,
    )
    items = [LabelRead.model_validate(label) for label in labels]
    return PaginatedResponse[LabelRead](
        **build_paginated_response(items, total, pagination.offset, pagination.limit)
    )


@router.post("/{project_id}/labels", response_model=LabelRead, status_code=status.HTTP_201_CREATED)
async def create_label(project_id: int, label_in: LabelCreate, session: SessionDep, actor: ActorDep) -> LabelRead:
    label = await run_unit_of_work(
        session,
        lambda: labels_service.create_label(
            session,
            actor,
            project_id=project_id,
            name=label_in.name,
            color=label_in.color,
        ),
    )
    return LabelRead.model_validate(label)


@router.post("/{project_id}/invitations", response_model=InvitationRead, status_code=status.HTTP_201_CREATED)
async def invite_member(
    project_id: int,
    invitation_in: InvitationCreate,
    session: SessionDep,
    actor: ActorDep,
) -> InvitationRead:
    invitation = await run_unit_of_work(
        session,
        lambda: invitations_service.invite_member(session, actor, project_id=project_id, email=invitation_in.email),
    )
    invitation = await invitations_service.load_invitation(session, invitation.id)
    return InvitationRead.model_validate(invitation)


@router.get("/{project_id}/invitations", response_model=PaginatedResponse[InvitationRead])
async def list_invitations(
    project_id: int,
    session: SessionDep,
    actor: ActorDep,
    pagination: PaginationDep,
) -> PaginatedResponse[InvitationRead]:
    invitations, total = await invitations_service.list_invitations(
        session,
        actor,
        project_id,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    items = [InvitationRead.model_validate(invitation) for invitation in invitations]
    return PaginatedResponse[InvitationRead](
        **build_paginated_response(items, total, pagination.offset, pagination.limit)
    )


@router.get("/{project_id}/activity", response_model=PaginatedResponse[ActivityLogRead])
async def list_activity(
    project_id: int,
    session: SessionDep,
    actor: ActorDep,
    pagination: PaginationDep,
) -> PaginatedResponse[ActivityLogRead]:
    entries, total = await projects_service.list_activity(
        session,
        actor,
        project_id,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    items = [ActivityLogRead.model_validate(entry) for entry in entries]
    return PaginatedResponse[ActivityLogRead](
        **build_paginated_response(items, total, pagination.offset, pagination.limit)
    )


@router.get("/{project_id}/tasks", response_model=PaginatedResponse[TaskRead])
async def list_project_tasks(
    project_id: int,
    session: SessionDep,
    actor: ActorDep,
    pagination: PaginationDep,
    task_status: Optional[TaskStatus] = Query(default=None, alias="status"),
    assignee_id: Optional[int] = Query(default=None),
) -> PaginatedResponse[TaskRead]:
    tasks, total = await tasks_service.list_project_tasks(
        session,
        actor,
        project_id,
        offset=pagination.offset,
        limit=pagination.limit,
        status=task_status,
        assignee_id=assignee_id,
    )
    return await task_page(session, tasks, total, pagination.offset, pagination.limit)
