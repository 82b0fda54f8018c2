"""Reusable query utilities for searching and offset pagination.

- apply_search: adds a case-insensitive substring match on one column
- apply_pagination: adds OFFSET/LIMIT
- paginated_query: executes count + data queries, returns (items, total)
- build_paginated_response: dict for unpacking into a PaginatedResponse
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import BadInputError
from taskboard.schemas.query import MAX_PAGE_SIZE


def normalize_search(raw: str | None) -> str | None:
    """Trim a search term; ``None`` means no filter, blank is rejected."""
    if raw is None:
        return None
    term = raw.strip()
    if not term:
        raise BadInputError("search cannot be empty")
    return term


def apply_search(statement: Select, column: Any, term: str | None) -> Select:
    if term is None:
        return statement
    return statement.where(column.ilike(f"%{term}%"))


def apply_pagination(statement: Select, offset: int = 0, limit: int = 20) -> Select:
    if offset < 0:
        raise BadInputError("offset must be >= 0")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise BadInputError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    return statement.offset(offset).limit(limit)


async def paginated_query(
    session: AsyncSession,
    data_stmt: Select,
    count_stmt: Select,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list, int]:
    """Execute count + data queries and return ``(items, total)``."""
    data_stmt = apply_pagination(data_stmt, offset, limit)
    total = (await session.exec(count_stmt)).one()
    result = await session.exec(data_stmt)
    return list(result.all()), total


def build_paginated_response(
    items: list,
    total: int,
    offset: int,
    limit: int,
    **extra: Any,
) -> dict:
    """Build a dict suitable for unpacking into a concrete response model."""
    return {
        "items": items,
        "total": total,
        "offset": offset,
        "limit": limit,
        "has_next": offset + len(items) < total,
        **extra,
    }
