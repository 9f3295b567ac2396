"""Shared response schemas: errors and pagination."""
import math
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """Body returned by the auth gate and other machine-readable failures."""

    error: str  # Stable tag, e.g. "unauthorized" or "database_error"
    message: str


class PaginationMeta(BaseModel):
    """Pagination metadata for list responses."""

    current_page: int
    total_items: int
    total_pages: int
    per_page: int


class PaginatedResponse(BaseModel, Generic[T]):
    """A page of items plus pagination metadata."""

    data: list[T]
    meta: PaginationMeta


def build_pagination_meta(total: int, page: int, per_page: int) -> PaginationMeta:
    """Compute pagination metadata for `total` items."""
    return PaginationMeta(
        current_page=page,
        total_items=total,
        total_pages=math.ceil(total / per_page) if per_page else 0,
        per_page=per_page,
    )
