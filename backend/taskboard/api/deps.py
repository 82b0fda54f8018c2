from typing import Annotated, Optional

from fastapi import Depends, Query
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.config import settings
from taskboard.core.security import Actor, decode_access_token
from taskboard.db.session import get_session
from taskboard.schemas.query import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PaginationParams

SessionDep = Annotated[AsyncSession, Depends(get_session)]

# auto_error is off so anonymous calls reach the guards, which own the
# Unauthenticated decision.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/token", auto_error=False)


async def get_actor(token: Annotated[Optional[str], Depends(oauth2_scheme)]) -> Optional[Actor]:
    if not token:
        return None
    return decode_access_token(token)


ActorDep = Annotated[Optional[Actor], Depends(get_actor)]


def get_pagination(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> PaginationParams:
    return PaginationParams(offset=offset, limit=limit)


PaginationDep = Annotated[PaginationParams, Depends(get_pagination)]
