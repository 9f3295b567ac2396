"""Pydantic schemas for transaction endpoints."""
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.common import PaginatedResponse
from schemas.tag import validate_and_normalize_tags

TransactionType = Literal["income", "expense"]
TransactionStatus = Literal["pending", "cleared", "reconciled"]


class TransactionCreate(BaseModel):
    """Schema for creating a new transaction."""

    description: str = Field(min_length=1, max_length=500)
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    type: TransactionType
    date: datetime | None = None  # Defaults to now
    currency: str = Field(default="USD", min_length=3, max_length=3)
    category: str | None = Field(default=None, max_length=100)
    status: TransactionStatus = "pending"
    account: str = Field(default="", max_length=100)
    notes: str | None = None
    tags: list[str] = []

    @field_validator("currency")
    @classmethod
    def uppercase_currency(cls, v: str) -> str:
        """Store ISO currency codes in upper case."""
        return v.upper()

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str]:
        """Normalize and validate tags."""
        if v is None:
            return []
        return validate_and_normalize_tags(v)


class TransactionUpdate(BaseModel):
    """Schema for updating an existing transaction (only provided fields change)."""

    description: str | None = Field(default=None, min_length=1, max_length=500)
    amount: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    type: TransactionType | None = None
    date: datetime | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    category: str | None = Field(default=None, max_length=100)
    status: TransactionStatus | None = None
    account: str | None = Field(default=None, max_length=100)
    notes: str | None = None
    tags: list[str] | None = None

    @field_validator("currency")
    @classmethod
    def uppercase_currency(cls, v: str | None) -> str | None:
        """Store ISO currency codes in upper case."""
        return v.upper() if v is not None else None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str] | None:
        """Normalize and validate tags if provided."""
        if v is None:
            return None
        return validate_and_normalize_tags(v)


class TransactionResponse(BaseModel):
    """Schema for transaction responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    date: datetime
    description: str
    amount: Decimal
    currency: str
    type: str
    category: str | None
    status: str
    account: str
    notes: str | None
    tags: list[str]
    created_at: datetime
    updated_at: datetime


TransactionListResponse = PaginatedResponse[TransactionResponse]
