"""
Cookie-session authentication for protected endpoints.

`get_current_identity` is the request gate:

- no `auth_token` cookie (or an empty one)  -> 401 unauthorized
- token fails verification                  -> 401 unauthorized
- token valid but the user no longer exists -> 401 unauthorized
- user lookup fails for any other reason    -> 500 database_error
- otherwise the handler receives an AuthenticatedIdentity

The 401/500 bodies are produced by the exception handlers registered in
`api.main`, so the gate only raises.
"""
import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.cookies import SESSION_COOKIE_NAME
from core.tokens import TokenCodec, TokenValidationError
from db.session import get_async_session
from models.user import User
from services.user_service import SqlUserStore, UserNotFoundError, UserStore

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when a request carries no usable session. Maps to 401."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UserLookupError(Exception):
    """Raised when the user store fails for a reason other than "not found". Maps to 500."""

    pass


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """The caller of a protected endpoint: the loaded user and their id."""

    user: User
    user_id: int


def get_token_codec(request: Request) -> TokenCodec:
    """Return the token codec built at application startup."""
    return request.app.state.token_codec


async def get_user_store(db: AsyncSession = Depends(get_async_session)) -> UserStore:
    """Return the user store for this request."""
    return SqlUserStore(db)


async def get_current_identity(
    request: Request,
    codec: TokenCodec = Depends(get_token_codec),
    store: UserStore = Depends(get_user_store),
) -> AuthenticatedIdentity:
    """Authenticate the request from its session cookie."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise AuthenticationError("Not authenticated")

    try:
        user_id = codec.verify(token)
    except TokenValidationError:
        raise AuthenticationError("Invalid or expired session token") from None

    try:
        user = await store.get_user_by_id(user_id)
    except UserNotFoundError:
        raise AuthenticationError("User not found") from None
    except Exception as e:
        logger.exception("user_lookup_failed", extra={"user_id": user_id})
        raise UserLookupError("Failed to load user") from e

    return AuthenticatedIdentity(user=user, user_id=user_id)


async def get_current_user(
    identity: AuthenticatedIdentity = Depends(get_current_identity),
) -> User:
    """Return the authenticated user record."""
    return identity.user


async def get_current_user_id(
    identity: AuthenticatedIdentity = Depends(get_current_identity),
) -> int:
    """Return just the authenticated user's id."""
    return identity.user_id
