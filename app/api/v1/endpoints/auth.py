"""
OAuth sign-in endpoints for GitHub and Google.
"""
import logging
from typing import Any, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app import crud
from app.api import deps
from app.core import oauth
from app.core.config import settings
from app.core.errors import StartupNationError
from app.core.redirect import resolve_redirect
from app.core.session import ClaimBundle, issue_token

logger = logging.getLogger(__name__)

router = APIRouter()

CALLBACK_URL_KEY = "callback_url"
SIGN_IN_FAILED = "Sign-in failed"


def _check_provider(provider: str) -> None:
    if provider not in oauth.PROVIDERS:
        raise HTTPException(status_code=404, detail="Unknown sign-in provider")


def _error_redirect(message: str) -> RedirectResponse:
    query = urlencode({"message": message})
    return RedirectResponse(
        url=f"{settings.FRONTEND_URL.rstrip('/')}/auth/error?{query}"
    )


@router.get("/{provider}/login")
async def oauth_login(
    provider: str, request: Request, callbackUrl: Optional[str] = None
) -> Any:
    """
    Redirect to the provider's consent page. ``callbackUrl`` is where the
    browser lands after sign-in; it is resolved against the web client's
    origin now and kept in the server session until the callback.
    """
    _check_provider(provider)
    request.session[CALLBACK_URL_KEY] = resolve_redirect(
        callbackUrl or settings.DEFAULT_LOGIN_REDIRECT
    )
    client = oauth.oauth.create_client(provider)
    return await client.authorize_redirect(request, oauth.redirect_uri_for(provider))


@router.get("/{provider}/callback")
async def oauth_callback(
    provider: str, request: Request, db: Session = Depends(deps.get_db)
) -> RedirectResponse:
    """
    Finish the provider flow, provision or sync the user, and hand the
    browser a session cookie.

    Any failure aborts the sign-in and sends the browser to the error page.
    Domain errors carry their reason there; anything else shows a generic
    message and is logged. Nothing is created for a failed or incomplete
    profile.
    """
    _check_provider(provider)
    try:
        profile = await oauth.fetch_profile(provider, request)
        user = crud.user.provision_oauth_user(db, profile=profile)
    except StartupNationError as e:
        logger.warning("OAuth sign-in via %s aborted: %s", provider, e.detail)
        return _error_redirect(e.detail)
    except Exception:
        logger.exception("OAuth sign-in via %s failed", provider)
        return _error_redirect(SIGN_IN_FAILED)

    logger.info("User signed in: %s via %s", user.email, provider)
    access_token, expires = issue_token(ClaimBundle.from_user(user))
    target = request.session.pop(CALLBACK_URL_KEY, None) or resolve_redirect(
        settings.DEFAULT_LOGIN_REDIRECT
    )
    response = RedirectResponse(url=target)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        access_token,
        expires=expires,
        httponly=True,
        samesite="lax",
    )
    return response
