"""
Route-level access guard for the web client's page namespace.

Only the presence of a session token is checked. The token is not decoded and
the onboarding flag is not consulted: the client asks
``GET /users/onboarding`` and redirects on its own.
"""
from typing import Optional, Sequence
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from app.core.config import settings


def is_authorized(
    path: str,
    has_token: bool,
    public_prefixes: Optional[Sequence[str]] = None,
    protected_prefixes: Optional[Sequence[str]] = None,
    protected_exact: Optional[Sequence[str]] = None,
) -> bool:
    public_prefixes = (
        settings.PUBLIC_PATH_PREFIXES if public_prefixes is None else public_prefixes
    )
    protected_prefixes = (
        settings.PROTECTED_PATH_PREFIXES
        if protected_prefixes is None
        else protected_prefixes
    )

    protected_exact = (
        settings.PROTECTED_EXACT_PATHS if protected_exact is None else protected_exact
    )

    if path == "/" or any(path.startswith(p) for p in public_prefixes):
        return True
    if path in protected_exact:
        return has_token
    for prefix in protected_prefixes:
        if path == prefix or path.startswith(prefix.rstrip("/") + "/"):
            return has_token
    return True


def request_has_token(request: Request) -> bool:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer ") and auth[7:].strip():
        return True
    return bool(request.cookies.get(settings.SESSION_COOKIE_NAME))


class AccessGuardMiddleware(BaseHTTPMiddleware):
    """Send unauthenticated visitors of protected pages to the login page."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if not is_authorized(path, request_has_token(request)):
            query = urlencode({"callbackUrl": path})
            return RedirectResponse(
                url=f"{settings.FRONTEND_URL.rstrip('/')}/login?{query}",
                status_code=307,
            )
        return await call_next(request)
