import asyncio
import logging

from sqlmodel import select

from taskboard.core.config import settings
from taskboard.core.security import get_password_hash
from taskboard.db.session import AsyncSessionLocal, run_migrations
from taskboard.models.user import User, UserProfile, UserRole

logger = logging.getLogger(__name__)


async def init_superuser() -> None:
    if not (settings.FIRST_SUPERUSER_EMAIL and settings.FIRST_SUPERUSER_PASSWORD):
        return

    email = settings.FIRST_SUPERUSER_EMAIL.strip().lower()
    async with AsyncSessionLocal() as session:
        result = await session.exec(select(User).where(User.email == email))
        if result.one_or_none():
            return

        superuser = User(
            email=email,
            hashed_password=get_password_hash(settings.FIRST_SUPERUSER_PASSWORD),
            role=UserRole.admin,
        )
        superuser.profile = UserProfile(display_name=settings.FIRST_SUPERUSER_DISPLAY_NAME or "Admin")
        session.add(superuser)
        await session.commit()
        logger.info("Created first superuser %s", email)


async def init() -> None:
    await run_migrations()
    await init_superuser()


if __name__ == "__main__":  # pragma: no cover
    asyncio.run(init())
