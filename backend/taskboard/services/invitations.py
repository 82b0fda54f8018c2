"""Project invitations: owners invite by email, the invitee redeems the token once."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.config import settings
from taskboard.core.errors import BadInputError, ForbiddenError, NotFoundError, UnauthenticatedError
from taskboard.core.security import Actor
from taskboard.db.query import paginated_query
from taskboard.models.activity_log import ActivityAction
from taskboard.models.invitation import Invitation, InvitationStatus
from taskboard.models.project import ProjectMember, ProjectRole
from taskboard.models.user import User
from taskboard.services import audit, guards
from taskboard.services.guards import BoardAction
from taskboard.services.users import normalize_email

logger = logging.getLogger(__name__)


async def _token_exists(session: AsyncSession, token: str) -> bool:
    stmt = select(Invitation.id).where(Invitation.token == token)
    result = await session.exec(stmt)
    return result.first() is not None


async def _generate_unique_token(session: AsyncSession) -> str:
    for _ in range(10):
        candidate = secrets.token_urlsafe(settings.INVITE_TOKEN_BYTES)
        if not await _token_exists(session, candidate):
            return candidate
    raise RuntimeError("Unable to generate unique invitation token")


async def invite_member(session: AsyncSession, actor: Optional[Actor], *, project_id: int, email: str) -> Invitation:
    actor = await guards.authorize(session, actor, BoardAction.invite_member, project_id)
    email = normalize_email(email)

    invitation = Invitation(
        project_id=project_id,
        email=email,
        token=await _generate_unique_token(session),
        invited_by_id=actor.id,
    )
    session.add(invitation)
    await session.flush()
    await audit.record(session, actor, ActivityAction.member_invited, project_id, details={"email": email})
    return invitation


async def accept_invite(session: AsyncSession, actor: Optional[Actor], *, token: str) -> ProjectMember:
    """Redeem a pending invitation for the actor.

    The invitation row is locked so that two concurrent redemptions serialize:
    the loser sees a non-pending status and fails with ``BadInputError``.
    """
    actor = await guards.authorize(session, actor, BoardAction.accept_invite)
    stmt = select(Invitation).where(Invitation.token == (token or "")).with_for_update()
    invitation = (await session.exec(stmt)).one_or_none()
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if invitation.status != InvitationStatus.pending:
        raise BadInputError("Invitation is no longer pending")

    user = await session.get(User, actor.id)
    if user is None:
        raise UnauthenticatedError("User no longer exists")
    if user.email.lower() != invitation.email.lower() and not actor.is_admin:
        raise ForbiddenError("This invitation was sent to a different email")

    membership = await guards.get_membership(session, project_id=invitation.project_id, user_id=actor.id)
    if membership is None:
        membership = ProjectMember(project_id=invitation.project_id, user_id=actor.id, role=ProjectRole.member)
        session.add(membership)

    invitation.status = InvitationStatus.accepted
    invitation.accepted_by_id = actor.id
    invitation.accepted_at = datetime.now(timezone.utc)
    session.add(invitation)
    await session.flush()

    await audit.record(
        session,
        actor,
        ActivityAction.invite_accepted,
        invitation.project_id,
        details={"email": invitation.email},
    )
    return membership


async def list_invitations(
    session: AsyncSession,
    actor: Optional[Actor],
    project_id: int,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Invitation], int]:
    await guards.authorize(session, actor, BoardAction.list_invitations, project_id)
    data_stmt = (
        select(Invitation)
        .where(Invitation.project_id == project_id)
        .options(selectinload(Invitation.project), selectinload(Invitation.invited_by))
        .order_by(Invitation.created_at.desc(), Invitation.id.desc())
    )
    count_stmt = select(func.count()).select_from(Invitation).where(Invitation.project_id == project_id)
    return await paginated_query(session, data_stmt, count_stmt, offset, limit)


async def load_invitation(session: AsyncSession, invitation_id: int) -> Invitation:
    stmt = (
        select(Invitation)
        .where(Invitation.id == invitation_id)
        .options(selectinload(Invitation.project), selectinload(Invitation.invited_by))
        .execution_options(populate_existing=True)
    )
    return (await session.exec(stmt)).one()


async def load_membership(session: AsyncSession, project_id: int, user_id: int) -> ProjectMember:
    stmt = (
        select(ProjectMember)
        .where(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .options(selectinload(ProjectMember.user))
        .execution_options(populate_existing=True)
    )
    return (await session.exec(stmt)).one()
