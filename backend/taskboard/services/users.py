from __future__ import annotations

import logging
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import BadInputError, UnauthenticatedError
from taskboard.core.security import Actor, get_password_hash, verify_password
from taskboard.models.user import User, UserProfile, UserRole
from taskboard.services import guards
from taskboard.services.guards import BoardAction

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
MAX_DISPLAY_NAME_LENGTH = 120


def normalize_email(raw: str) -> str:
    email = (raw or "").strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise BadInputError("Invalid email")
    return email


async def get_user(session: AsyncSession, user_id: int) -> Optional[User]:
    return await session.get(User, user_id)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.exec(select(User).where(User.email == email.strip().lower()))
    return result.one_or_none()


async def register_user(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    display_name: str,
    role: UserRole = UserRole.user,
) -> User:
    email = normalize_email(email)
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise BadInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    display_name = (display_name or "").strip()
    if not display_name:
        raise BadInputError("Display name is required")
    if len(display_name) > MAX_DISPLAY_NAME_LENGTH:
        raise BadInputError(f"Display name must be at most {MAX_DISPLAY_NAME_LENGTH} characters")
    if await get_user_by_email(session, email):
        raise BadInputError("Email already registered")

    user = User(email=email, hashed_password=get_password_hash(password), role=role)
    user.profile = UserProfile(display_name=display_name)
    session.add(user)
    await session.flush()
    logger.info("Registered user %s", user.id)
    return user


async def authenticate(session: AsyncSession, *, email: str, password: str) -> User:
    """Return the user matching the credentials.

    Unknown emails and wrong passwords fail identically.
    """
    user = await get_user_by_email(session, email or "")
    if not user or not verify_password(password or "", user.hashed_password):
        raise BadInputError("Invalid credentials")
    return user


async def get_me(session: AsyncSession, actor: Optional[Actor]) -> User:
    actor = await guards.authorize(session, actor, BoardAction.view_self)
    user = await get_user(session, actor.id)
    if user is None:
        raise UnauthenticatedError("User no longer exists")
    return user
