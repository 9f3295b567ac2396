"""Session cookie policy and attribute helpers."""
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

SESSION_COOKIE_NAME = "auth_token"

# Aligned with the token TTL so the cookie and the token expire together.
SESSION_COOKIE_TTL = timedelta(hours=24)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True)
class CookiePolicy:
    """Security attributes applied to the session cookie."""

    secure: bool
    samesite: str


def cookie_policy(production: bool) -> CookiePolicy:
    """
    Choose cookie security attributes for the deployment environment.

    Production needs SameSite=None (which browsers only accept with Secure) so the
    cookie survives the cross-site OAuth redirect. Local development runs over
    plain HTTP, where Secure cookies are dropped, so it uses Lax.
    """
    if production:
        return CookiePolicy(secure=True, samesite="None")
    return CookiePolicy(secure=False, samesite="Lax")


def session_cookie_kwargs(
    policy: CookiePolicy, token: str, now: datetime | None = None,
) -> dict[str, Any]:
    """Keyword arguments for `Response.set_cookie` that start a session."""
    issued_at = now or datetime.now(UTC)
    return {
        "key": SESSION_COOKIE_NAME,
        "value": token,
        "path": "/",
        "httponly": True,
        "secure": policy.secure,
        "samesite": policy.samesite,
        "expires": issued_at + SESSION_COOKIE_TTL,
    }


def clear_session_cookie_kwargs(policy: CookiePolicy) -> dict[str, Any]:
    """Keyword arguments for `Response.set_cookie` that end a session."""
    return {
        "key": SESSION_COOKIE_NAME,
        "value": "",
        "path": "/",
        "httponly": True,
        "secure": policy.secure,
        "samesite": policy.samesite,
        "expires": _EPOCH,
        "max_age": -1,
    }
