"""
Authentication endpoints.

- Google sign-in (authorization-code flow) with a fixed callback path
- Logout (drops the server-side session)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from portfolio.api.deps import get_identity_provider
from portfolio.core.errors import OAuthFailure
from portfolio.core.oauth import IdentityProvider
from portfolio.core.session import clear_identity, load_identity, store_identity

log = structlog.get_logger()
router = APIRouter()

CALLBACK_PATH = "/auth/google/callback"


@router.get("/auth/google", name="google_login")
async def google_login(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Redirect to the Google consent screen."""
    redirect_uri = str(request.url_for("google_callback"))
    try:
        return await provider.authorize_redirect(request, redirect_uri)
    except OAuthFailure as exc:
        log.warning("auth.login_failure", provider=provider.name, reason=str(exc))
        return RedirectResponse("/", status_code=302)


@router.get(CALLBACK_PATH, name="google_callback")
async def google_callback(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Complete the code exchange and start an authenticated session."""
    try:
        identity = await provider.authorize(request)
    except OAuthFailure as exc:
        log.warning("auth.login_failure", provider=provider.name, reason=str(exc))
        return RedirectResponse("/", status_code=302)

    store_identity(request, identity)
    log.info(
        "auth.login_success",
        provider=identity.provider,
        provider_user_id=identity.provider_user_id,
    )
    return RedirectResponse("/dashboard", status_code=302)


@router.get("/logout", name="logout")
async def logout(request: Request):
    """Invalidate the current session."""
    identity = load_identity(request)
    clear_identity(request)
    if identity is not None:
        log.info("auth.logout", provider_user_id=identity.provider_user_id)
    return RedirectResponse("/", status_code=302)
