"""Pydantic schemas for the current-user endpoint."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserProfileResponse(BaseModel):
    """Public profile of the authenticated user."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str | None
    email: str
    avatar_url: str | None = Field(serialization_alias="avatarUrl")
    preferences: dict[str, Any] = {}

    @field_validator("preferences", mode="before")
    @classmethod
    def default_preferences(cls, v: dict[str, Any] | None) -> dict[str, Any]:
        """Users without stored preferences get an empty object."""
        return v or {}
