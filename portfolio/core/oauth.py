"""
Google sign-in via the OAuth2 authorization-code flow.

authlib keeps the `state` parameter in `request.session` between the
redirect and the callback. The provider profile is mapped to an Identity
here and nowhere else.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Mapping, Protocol

import httpx
import structlog
from authlib.integrations.starlette_client import OAuth, OAuthError
from starlette.requests import Request
from starlette.responses import Response

from portfolio.core.errors import OAuthFailure
from portfolio.schemas.identity import Identity

log = structlog.get_logger()

GOOGLE_DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"
GOOGLE_SCOPES = ("profile", "email")


class IdentityProvider(Protocol):
    name: str

    async def authorize_redirect(self, request: Request, redirect_uri: str) -> Response: ...

    async def authorize(self, request: Request) -> Identity: ...


def identity_from_google_profile(profile: Mapping[str, Any]) -> Identity:
    """Map a Google userinfo document to an Identity.

    Raises OAuthFailure when the profile lacks a subject id.
    """
    subject = profile.get("sub")
    if not subject:
        raise OAuthFailure("Google profile has no subject id")
    email = profile.get("email") or None
    display_name = profile.get("name") or email or str(subject)
    return Identity(
        provider="google",
        provider_user_id=str(subject),
        display_name=display_name,
        email=email,
    )


class GoogleIdentityProvider:
    name = "google"

    def __init__(self, client_id: str, client_secret: str):
        if not (client_id and client_secret):
            log.warning("oauth.google_not_configured")
        self._oauth = OAuth()
        self.client = self._oauth.register(
            name="google",
            client_id=client_id,
            client_secret=client_secret,
            server_metadata_url=GOOGLE_DISCOVERY_URL,
            client_kwargs={"scope": " ".join(GOOGLE_SCOPES)},
        )

    async def authorize_redirect(self, request: Request, redirect_uri: str) -> Response:
        with _provider_errors():
            return await self.client.authorize_redirect(request, redirect_uri)

    async def authorize(self, request: Request) -> Identity:
        with _provider_errors():
            token = await self.client.authorize_access_token(request)
            # No `openid` scope, so there is no ID token; ask the userinfo endpoint.
            profile = token.get("userinfo") or await self.client.userinfo(token=token)
        return identity_from_google_profile(profile)


@contextmanager
def _provider_errors():
    """Re-raise authlib and transport errors as OAuthFailure."""
    try:
        yield
    except OAuthError as exc:
        raise OAuthFailure(f"{exc.error}: {exc.description or ''}".strip(": ")) from exc
    except httpx.HTTPError as exc:
        raise OAuthFailure(f"provider request failed: {exc.__class__.__name__}") from exc
