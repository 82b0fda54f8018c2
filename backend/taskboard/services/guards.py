"""Authorization guards for board operations.

Every guarded operation names a :class:`BoardAction`; each action maps to one
:class:`Requirement`, and :func:`decide` turns (requirement, global role,
project role) into an allow/deny :class:`Decision` by table lookup alone.
The async guards below only gather the inputs for that table: they resolve
the actor, confirm the project (or the column/task leading to it) exists, and
read the actor's membership row.

Guards run left-to-right and stop at the first failure, so a missing
resource is always reported as ``NotFound`` before any membership check runs
against it.
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import BoardError, ForbiddenError, NotFoundError, UnauthenticatedError
from taskboard.core.security import Actor
from taskboard.models.column import BoardColumn
from taskboard.models.project import Project, ProjectMember, ProjectRole
from taskboard.models.task import Task
from taskboard.models.user import UserRole


class Requirement(str, Enum):
    authenticated = "authenticated"
    global_admin = "global_admin"
    project_member = "project_member"
    project_owner = "project_owner"


class BoardAction(str, Enum):
    view_self = "view_self"
    list_projects = "list_projects"
    create_project = "create_project"
    accept_invite = "accept_invite"
    view_project = "view_project"
    list_members = "list_members"
    list_labels = "list_labels"
    list_tasks = "list_tasks"
    view_task = "view_task"
    view_activity = "view_activity"
    list_comments = "list_comments"
    create_task = "create_task"
    update_task = "update_task"
    move_task = "move_task"
    assign_task = "assign_task"
    comment_task = "comment_task"
    add_label_to_task = "add_label_to_task"
    remove_label_from_task = "remove_label_from_task"
    create_column = "create_column"
    create_label = "create_label"
    invite_member = "invite_member"
    list_invitations = "list_invitations"


ACTION_REQUIREMENTS: dict[BoardAction, Requirement] = {
    BoardAction.view_self: Requirement.authenticated,
    BoardAction.list_projects: Requirement.authenticated,
    BoardAction.create_project: Requirement.authenticated,
    BoardAction.accept_invite: Requirement.authenticated,
    BoardAction.view_project: Requirement.project_member,
    BoardAction.list_members: Requirement.project_member,
    BoardAction.list_labels: Requirement.project_member,
    BoardAction.list_tasks: Requirement.project_member,
    BoardAction.view_task: Requirement.project_member,
    BoardAction.view_activity: Requirement.project_member,
    BoardAction.list_comments: Requirement.project_member,
    BoardAction.create_task: Requirement.project_member,
    BoardAction.update_task: Requirement.project_member,
    BoardAction.move_task: Requirement.project_member,
    BoardAction.assign_task: Requirement.project_member,
    BoardAction.comment_task: Requirement.project_member,
    BoardAction.add_label_to_task: Requirement.project_member,
    BoardAction.remove_label_from_task: Requirement.project_member,
    BoardAction.create_column: Requirement.project_owner,
    BoardAction.create_label: Requirement.project_owner,
    BoardAction.invite_member: Requirement.project_owner,
    BoardAction.list_invitations: Requirement.project_owner,
}

PROJECT_REQUIREMENTS = frozenset({Requirement.project_member, Requirement.project_owner})


@dataclass(frozen=True)
class Decision:
    allowed: bool
    error: type[BoardError] | None = None
    message: str | None = None

    def enforce(self) -> None:
        if not self.allowed:
            assert self.error is not None
            raise self.error(self.message)


ALLOW = Decision(allowed=True)
_NOT_MEMBER = Decision(False, ForbiddenError, "You are not a member of this project")
_OWNER_ONLY = Decision(False, ForbiddenError, "Owner only")
_ADMIN_ONLY = Decision(False, ForbiddenError, "Admin only")
_UNAUTHENTICATED = Decision(False, UnauthenticatedError, "Authentication required")

# Decisions for authenticated non-admin actors, keyed by the actor's
# membership role in the project (None when there is no membership row).
# ADMIN is allowed everything and never consults this table.
POLICY: dict[tuple[Requirement, ProjectRole | None], Decision] = {
    (Requirement.authenticated, None): ALLOW,
    (Requirement.authenticated, ProjectRole.member): ALLOW,
    (Requirement.authenticated, ProjectRole.owner): ALLOW,
    (Requirement.global_admin, None): _ADMIN_ONLY,
    (Requirement.global_admin, ProjectRole.member): _ADMIN_ONLY,
    (Requirement.global_admin, ProjectRole.owner): _ADMIN_ONLY,
    (Requirement.project_member, None): _NOT_MEMBER,
    (Requirement.project_member, ProjectRole.member): ALLOW,
    (Requirement.project_member, ProjectRole.owner): ALLOW,
    (Requirement.project_owner, None): _NOT_MEMBER,
    (Requirement.project_owner, ProjectRole.member): _OWNER_ONLY,
    (Requirement.project_owner, ProjectRole.owner): ALLOW,
}


def decide(
    requirement: Requirement,
    actor_role: UserRole | None,
    membership_role: ProjectRole | None,
) -> Decision:
    """Pure policy lookup; ``actor_role`` is None for an anonymous caller."""
    if actor_role is None:
        return _UNAUTHENTICATED
    if actor_role == UserRole.admin:
        return ALLOW
    return POLICY[(requirement, membership_role)]


async def run_guards(*checks: Callable[[], Any]) -> list[Any]:
    """Evaluate guard thunks in order; the first raised error stops the chain.

    Each thunk may return a plain value or an awaitable. The collected results
    are returned in order so callers can unpack resolved ids.
    """
    results: list[Any] = []
    for check in checks:
        value = check()
        if inspect.isawaitable(value):
            value = await value
        results.append(value)
    return results


def require_authenticated(actor: Actor | None) -> Actor:
    if actor is None:
        raise UnauthenticatedError()
    return actor


def require_global_admin(actor: Actor | None) -> Actor:
    actor = require_authenticated(actor)
    decide(Requirement.global_admin, actor.role, None).enforce()
    return actor


async def get_membership(
    session: AsyncSession,
    *,
    project_id: int,
    user_id: int,
) -> ProjectMember | None:
    stmt = select(ProjectMember).where(
        ProjectMember.project_id == project_id,
        ProjectMember.user_id == user_id,
    )
    result = await session.exec(stmt)
    return result.one_or_none()


async def get_membership_role(
    session: AsyncSession,
    *,
    project_id: int,
    user_id: int,
) -> ProjectRole | None:
    stmt = select(ProjectMember.role).where(
        ProjectMember.project_id == project_id,
        ProjectMember.user_id == user_id,
    )
    result = await session.exec(stmt)
    return result.one_or_none()


async def ensure_project_exists(session: AsyncSession, project_id: int) -> int:
    result = await session.exec(select(Project.id).where(Project.id == project_id))
    if result.one_or_none() is None:
        raise NotFoundError("Project not found")
    return project_id


async def project_id_for_column(session: AsyncSession, column_id: int) -> int:
    result = await session.exec(select(BoardColumn.project_id).where(BoardColumn.id == column_id))
    project_id = result.one_or_none()
    if project_id is None:
        raise NotFoundError("Column not found")
    return project_id


async def project_id_for_task(session: AsyncSession, task_id: int) -> int:
    stmt = (
        select(BoardColumn.project_id)
        .join(Task, Task.column_id == BoardColumn.id)
        .where(Task.id == task_id)
    )
    result = await session.exec(stmt)
    project_id = result.one_or_none()
    if project_id is None:
        raise NotFoundError("Task not found")
    return project_id


async def _enforce(
    session: AsyncSession,
    actor: Actor | None,
    requirement: Requirement,
    project_id: int | None,
) -> Actor:
    actor = require_authenticated(actor)
    membership_role: ProjectRole | None = None
    if requirement in PROJECT_REQUIREMENTS:
        if project_id is None:
            raise ValueError(f"{requirement.value} requires a project id")
        await ensure_project_exists(session, project_id)
        if not actor.is_admin:
            membership_role = await get_membership_role(session, project_id=project_id, user_id=actor.id)
    decide(requirement, actor.role, membership_role).enforce()
    return actor


async def require_project_member(session: AsyncSession, actor: Actor | None, project_id: int) -> Actor:
    return await _enforce(session, actor, Requirement.project_member, project_id)


async def require_project_owner(session: AsyncSession, actor: Actor | None, project_id: int) -> Actor:
    return await _enforce(session, actor, Requirement.project_owner, project_id)


async def authorize(
    session: AsyncSession,
    actor: Actor | None,
    action: BoardAction,
    project_id: int | None = None,
) -> Actor:
    return await _enforce(session, actor, ACTION_REQUIREMENTS[action], project_id)


async def authorize_task(
    session: AsyncSession,
    actor: Actor | None,
    action: BoardAction,
    task_id: int,
) -> tuple[Actor, int]:
    """Authenticate, resolve the task's project, then apply the action's requirement."""
    actor, project_id = await run_guards(
        lambda: require_authenticated(actor),
        lambda: project_id_for_task(session, task_id),
    )
    await authorize(session, actor, action, project_id)
    return actor, project_id


async def authorize_column(
    session: AsyncSession,
    actor: Actor | None,
    action: BoardAction,
    column_id: int,
) -> tuple[Actor, int]:
    actor, project_id = await run_guards(
        lambda: require_authenticated(actor),
        lambda: project_id_for_column(session, column_id),
    )
    await authorize(session, actor, action, project_id)
    return actor, project_id
