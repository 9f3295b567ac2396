"""OAuth login, logout and current-user endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse

from api.dependencies import (
    get_current_user,
    get_oauth_providers,
    get_settings,
    get_token_codec,
    get_user_store,
)
from core.config import Settings
from core.cookies import clear_session_cookie_kwargs, cookie_policy, session_cookie_kwargs
from core.keys import ConfigurationError
from core.tokens import TokenCodec
from models.user import OAUTH_PASSWORD_SENTINEL, User
from schemas.user import UserProfileResponse
from services.oauth import (
    DEFAULT_PROVIDER,
    OAuthExchangeError,
    OAuthProviders,
    ProviderProfile,
    UnknownProviderError,
)
from services.user_service import NewUser, UserNotFoundError, UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def find_or_create_user(store: UserStore, profile: ProviderProfile) -> User:
    """Return the local user for the profile's email, creating one on first login."""
    try:
        user = await store.get_user_by_email(profile.email)
    except UserNotFoundError:
        pass
    except Exception as e:
        logger.exception("user_lookup_failed", extra={"provider": profile.provider})
        raise HTTPException(status_code=500, detail="Database error") from e
    else:
        logger.info("user_logged_in", extra={"user_id": user.id, "provider": profile.provider})
        return user

    try:
        user = await store.create_user(
            NewUser(
                email=profile.email,
                password_hash=OAUTH_PASSWORD_SENTINEL,
                name=profile.name,
                avatar_url=profile.avatar_url,
            ),
        )
    except Exception as e:
        logger.exception("user_create_failed", extra={"provider": profile.provider})
        raise HTTPException(status_code=500, detail="Failed to create user") from e
    logger.info("user_created", extra={"user_id": user.id, "provider": profile.provider})
    return user


@router.get("/me", response_model=UserProfileResponse)
async def get_me(current_user: User = Depends(get_current_user)) -> UserProfileResponse:
    """Return the authenticated user's profile."""
    return UserProfileResponse.model_validate(current_user)


@router.post("/logout", status_code=204)
async def logout(settings: Settings = Depends(get_settings)) -> Response:
    """Clear the session cookie. Always succeeds."""
    response = Response(status_code=204)
    response.set_cookie(**clear_session_cookie_kwargs(cookie_policy(settings.is_production)))
    return response


async def _begin(
    provider: str, request: Request, settings: Settings, oauth: OAuthProviders,
) -> Response:
    if not oauth.is_configured(provider):
        raise HTTPException(status_code=404, detail=f"Unknown OAuth provider: {provider}")
    redirect_uri = settings.oauth_callback_url or str(
        request.url_for("complete_auth", provider=provider),
    )
    return await oauth.begin(request, provider, redirect_uri)


@router.get("/login")
async def begin_default_auth(
    request: Request,
    settings: Settings = Depends(get_settings),
    oauth: OAuthProviders = Depends(get_oauth_providers),
) -> Response:
    """Start login with the default provider."""
    return await _begin(DEFAULT_PROVIDER, request, settings, oauth)


@router.get("/login/{provider}")
async def begin_auth_alias(
    provider: str,
    request: Request,
    settings: Settings = Depends(get_settings),
    oauth: OAuthProviders = Depends(get_oauth_providers),
) -> Response:
    """Start login with `provider` (alias of GET /auth/{provider})."""
    return await _begin(provider, request, settings, oauth)


@router.get("/{provider}/callback", name="complete_auth")
async def complete_auth(
    provider: str,
    request: Request,
    settings: Settings = Depends(get_settings),
    oauth: OAuthProviders = Depends(get_oauth_providers),
    codec: TokenCodec = Depends(get_token_codec),
    store: UserStore = Depends(get_user_store),
) -> RedirectResponse:
    """
    Finish login: exchange the code, upsert the user, set the session cookie.

    Redirects the browser to the configured frontend URL.
    """
    try:
        profile = await oauth.complete(request, provider)
    except UnknownProviderError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except OAuthExchangeError as e:
        logger.warning("oauth_exchange_failed", extra={"provider": provider})
        raise HTTPException(status_code=400, detail=str(e)) from e

    if not profile.email:
        raise HTTPException(status_code=400, detail="email not provided by OAuth provider")

    user = await find_or_create_user(store, profile)

    try:
        token = codec.issue(user.id)
    except ConfigurationError as e:
        logger.exception("token_issue_failed")
        raise HTTPException(status_code=500, detail="Failed to generate token") from e

    response = RedirectResponse(settings.frontend_url, status_code=307)
    response.set_cookie(**session_cookie_kwargs(cookie_policy(settings.is_production), token))
    return response


@router.get("/{provider}")
async def begin_auth(
    provider: str,
    request: Request,
    settings: Settings = Depends(get_settings),
    oauth: OAuthProviders = Depends(get_oauth_providers),
) -> Response:
    """Redirect the browser to `provider`'s consent page."""
    return await _begin(provider, request, settings, oauth)
