import asyncio
import logging
from collections.abc import AsyncGenerator
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.config import settings
from taskboard.db import base  # noqa: F401  # ensure models are imported for metadata

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parents[2]

engine = create_async_engine(settings.DATABASE_URL, echo=False, future=True, pool_pre_ping=True)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def _get_alembic_config() -> Config:
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    config.attributes["configure_logger"] = False
    config.attributes["url_configured"] = True
    return config


async def run_migrations() -> None:
    """Upgrade the store to the latest Alembic revision.

    Alembic's async env drives its own event loop, so the upgrade runs in a
    worker thread rather than on the application's loop.
    """
    logger.info("Applying database migrations")
    await asyncio.to_thread(command.upgrade, _get_alembic_config(), "head")
