"""OAuth provider integration (authorization redirect and code exchange)."""
import logging
from dataclasses import dataclass

import httpx
from authlib.integrations.starlette_client import OAuth, OAuthError
from starlette.requests import Request
from starlette.responses import Response

from core.config import Settings

logger = logging.getLogger(__name__)

GOOGLE_DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"
DEFAULT_PROVIDER = "google"


class UnknownProviderError(Exception):
    """Raised when a login is attempted with a provider that is not configured."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"OAuth provider '{provider}' is not configured")


class OAuthExchangeError(Exception):
    """Raised when the authorization code cannot be exchanged for a profile."""

    pass


@dataclass(frozen=True)
class ProviderProfile:
    """Identity returned by the OAuth provider."""

    provider: str
    email: str | None
    name: str | None
    avatar_url: str | None


class OAuthProviders:
    """
    Registry of configured OAuth providers.

    Wraps Authlib's Starlette client; the OAuth `state` round-trips through the
    Starlette session, so SessionMiddleware must be installed.
    """

    def __init__(self, settings: Settings) -> None:
        self._oauth = OAuth()
        self._names: set[str] = set()
        if settings.google_enabled:
            self._oauth.register(
                name="google",
                client_id=settings.google_client_id,
                client_secret=settings.google_client_secret,
                server_metadata_url=GOOGLE_DISCOVERY_URL,
                client_kwargs={"scope": "openid email profile"},
            )
            self._names.add("google")
        else:
            logger.warning("oauth_provider_disabled", extra={"provider": "google"})

    def is_configured(self, provider: str) -> bool:
        """True if `provider` can be used to log in."""
        return provider in self._names

    def _client(self, provider: str):  # noqa: ANN202
        if provider not in self._names:
            raise UnknownProviderError(provider)
        return self._oauth.create_client(provider)

    async def begin(self, request: Request, provider: str, redirect_uri: str) -> Response:
        """Return the redirect that sends the browser to the provider's consent page."""
        client = self._client(provider)
        return await client.authorize_redirect(request, redirect_uri)

    async def complete(self, request: Request, provider: str) -> ProviderProfile:
        """
        Exchange the callback's authorization code for the user's profile.

        Raises:
            UnknownProviderError: If the provider is not configured.
            OAuthExchangeError: If the exchange or profile fetch fails.
        """
        client = self._client(provider)
        try:
            token = await client.authorize_access_token(request)
            userinfo = token.get("userinfo") or await client.userinfo(token=token)
        except (OAuthError, httpx.HTTPError) as e:
            raise OAuthExchangeError(str(e) or "OAuth exchange failed") from e

        return ProviderProfile(
            provider=provider,
            email=userinfo.get("email") or None,
            name=userinfo.get("name") or None,
            avatar_url=userinfo.get("picture") or None,
        )
