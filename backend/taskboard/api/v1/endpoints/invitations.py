from fastapi import APIRouter

from taskboard.api.deps import ActorDep, SessionDep
from taskboard.schemas.invitation import InvitationAccept
from taskboard.schemas.project import ProjectMemberRead
from taskboard.services import invitations as invitations_service
from taskboard.services.transactions import run_unit_of_work

router = APIRouter()


@router.post("/accept", response_model=ProjectMemberRead)
async def accept_invitation(accept_in: InvitationAccept, session: SessionDep, actor: ActorDep) -> ProjectMemberRead:
    membership = await run_unit_of_work(
        session,
        lambda: invitations_service.accept_invite(session, actor, token=accept_in.token),
    )
    membership = await invitations_service.load_membership(session, membership.project_id, membership.user_id)
    return ProjectMemberRead.model_validate(membership)
