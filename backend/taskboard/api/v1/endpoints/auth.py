import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from taskboard.api.deps import ActorDep, SessionDep
from taskboard.core.security import create_access_token
from taskboard.models.user import User
from taskboard.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, Token
from taskboard.schemas.user import UserRead
from taskboard.services import users as users_service
from taskboard.services.transactions import run_unit_of_work

router = APIRouter()
logger = logging.getLogger(__name__)


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        access_token=create_access_token(user.id, user.role),
        user=UserRead.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: RegisterRequest, session: SessionDep) -> AuthResponse:
    user = await run_unit_of_work(
        session,
        lambda: users_service.register_user(
            session,
            email=user_in.email,
            password=user_in.password,
            display_name=user_in.display_name,
        ),
    )
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(credentials: LoginRequest, session: SessionDep) -> AuthResponse:
    user = await users_service.authenticate(session, email=credentials.email, password=credentials.password)
    logger.info("User %s logged in", user.id)
    return _auth_response(user)


@router.post("/token", response_model=Token)
async def login_access_token(
    session: SessionDep,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
) -> Token:
    """OAuth2 password flow for the interactive docs."""
    user = await users_service.authenticate(session, email=form_data.username, password=form_data.password)
    return Token(access_token=create_access_token(user.id, user.role))


@router.get("/me", response_model=UserRead)
async def read_me(session: SessionDep, actor: ActorDep) -> User:
    return await users_service.get_me(session, actor)
