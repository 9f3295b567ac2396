"""User lookup and creation."""
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User


class UserNotFoundError(Exception):
    """Raised when no user matches the lookup."""

    pass


@dataclass(frozen=True)
class NewUser:
    """Fields for creating a user."""

    email: str
    password_hash: str
    name: str | None = None
    avatar_url: str | None = None


class UserStore(Protocol):
    """
    Data access needed by authentication.

    Lookups raise UserNotFoundError when the user is absent. Any other exception
    is an infrastructure failure and must not be treated as "not found".
    """

    async def get_user_by_id(self, user_id: int) -> User: ...

    async def get_user_by_email(self, email: str) -> User: ...

    async def create_user(self, params: NewUser) -> User: ...


class SqlUserStore:
    """UserStore backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_user_by_id(self, user_id: int) -> User:
        """Get a user by primary key."""
        user = await self._db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(f"No user with id {user_id}")
        return user

    async def get_user_by_email(self, email: str) -> User:
        """Get a user by email address."""
        result = await self._db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError("No user with that email")
        return user

    async def create_user(self, params: NewUser) -> User:
        """Insert a new user and return it with database defaults loaded."""
        user = User(
            email=params.email,
            password_hash=params.password_hash,
            name=params.name,
            avatar_url=params.avatar_url,
        )
        self._db.add(user)
        await self._db.flush()
        await self._db.refresh(user)
        return user
