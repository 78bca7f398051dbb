"""
Route guard for the dashboard.

Anonymous requests under /dashboard are sent to the login page with a
callbackUrl back to where they were going. Signed-in users asking for
the login page are sent to the dashboard instead.
"""

import logging
from urllib.parse import urlencode

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from invoicedesk.services.auth import DEFAULT_REDIRECT, SESSION_COOKIE

logger = logging.getLogger(__name__)

PROTECTED_PREFIX = "/dashboard"
LOGIN_PATH = "/login"


def is_protected(path: str) -> bool:
    return path == PROTECTED_PREFIX or path.startswith(PROTECTED_PREFIX + "/")


class AuthGuardMiddleware(BaseHTTPMiddleware):
    """Redirects based on the session cookie before routing."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not is_protected(path) and path != LOGIN_PATH:
            return await call_next(request)

        authenticator = request.app.state.authenticator
        user_id = authenticator.session_user(request.cookies.get(SESSION_COOKIE))

        if is_protected(path) and user_id is None:
            target = path + (f"?{request.url.query}" if request.url.query else "")
            logger.debug(f"Anonymous request to {path}, redirecting to login")
            return RedirectResponse(
                f"{LOGIN_PATH}?{urlencode({'callbackUrl': target})}",
                status_code=status.HTTP_303_SEE_OTHER,
            )

        if path == LOGIN_PATH and request.method == "GET" and user_id is not None:
            return RedirectResponse(DEFAULT_REDIRECT, status_code=status.HTTP_303_SEE_OTHER)

        return await call_next(request)
