from fastapi import APIRouter

from taskboard.api.v1.endpoints import auth, columns, invitations, projects, tasks

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(columns.router, prefix="/columns", tags=["columns"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(invitations.router, prefix="/invitations", tags=["invitations"])
