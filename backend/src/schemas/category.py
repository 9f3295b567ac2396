"""Pydantic schemas for category endpoints."""
from pydantic import BaseModel


class CategoryCount(BaseModel):
    """Schema for a category with the number of transactions in it."""

    name: str
    count: int


class CategoryListResponse(BaseModel):
    """Schema for the categories list response."""

    categories: list[CategoryCount]
