"""Pydantic schemas for tag endpoints."""
import re

from pydantic import BaseModel

TAG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


def validate_and_normalize_tags(tags: list[str]) -> list[str]:
    """
    Normalize tags: lowercase, validate format (alphanumeric + hyphens only).

    Blank entries are dropped and duplicates removed, keeping first occurrence.

    Format: lowercase alphanumeric with hyphens (e.g., 'groceries', 'eating-out')
    Pattern: ^[a-z0-9]+(-[a-z0-9]+)*$
    """
    normalized: list[str] = []
    for tag in tags:
        normalized_tag = tag.lower().strip()
        if not normalized_tag:
            continue
        if not TAG_PATTERN.match(normalized_tag):
            raise ValueError(
                f"Invalid tag format: '{normalized_tag}'. "
                "Use lowercase letters, numbers, and hyphens only (e.g., 'eating-out').",
            )
        if normalized_tag not in normalized:
            normalized.append(normalized_tag)
    return normalized


class TagCount(BaseModel):
    """Schema for a tag with its usage count."""

    name: str
    count: int


class TagListResponse(BaseModel):
    """Schema for the tags list response."""

    tags: list[TagCount]
