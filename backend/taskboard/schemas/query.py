"""Shared query schemas for offset pagination."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field


MAX_PAGE_SIZE = 50
DEFAULT_PAGE_SIZE = 20


class PaginationParams(BaseModel):
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    items: list[T]
    total: int
    offset: int
    limit: int
    has_next: bool
