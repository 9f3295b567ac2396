"""User model for storing authenticated users."""
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.tag import Tag
    from models.transaction import Transaction

# Stored in place of a password hash for accounts created through OAuth login.
OAUTH_PASSWORD_SENTINEL = "google_oauth_user"


class User(Base, TimestampMixin):
    """User model - one row per email address that has logged in."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    preferences: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        comment="Password hash, or the OAuth sentinel for federated accounts",
    )

    transactions: Mapped[list["Transaction"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tags: Mapped[list["Tag"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
