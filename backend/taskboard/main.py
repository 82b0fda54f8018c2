import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskboard.api.error_handlers import register_error_handlers
from taskboard.api.v1.api import api_router
from taskboard.core.config import settings
from taskboard.db.init_db import init_superuser
from taskboard.db.session import run_migrations

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url=f"{settings.API_V1_STR}/docs",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", include_in_schema=False)
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.on_event("startup")
async def on_startup() -> None:
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        await run_migrations()
    await init_superuser()
    logger.info("%s started", settings.PROJECT_NAME)
