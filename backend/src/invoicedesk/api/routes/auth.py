"""
Login and logout endpoints.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from invoicedesk.api.dependencies import AuthenticatorDep
from invoicedesk.api.schemas import LoginView
from invoicedesk.services.auth import SESSION_COOKIE, authenticate, safe_redirect

router = APIRouter(tags=["auth"])


@router.get("/login", response_model=LoginView)
async def login_form(callbackUrl: str | None = None) -> LoginView:
    return LoginView(redirect_to=safe_redirect(callbackUrl))


@router.post(
    "/login",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={401: {"model": LoginView, "description": "Sign-in failed"}},
)
async def submit_login(request: Request, authenticator: AuthenticatorDep) -> Response:
    """
    Sign in with email and password.

    On success the session cookie is set and the client is sent to the
    form's `redirectTo` path (default /dashboard).
    """
    form = await request.form()
    outcome = await authenticate(None, form, authenticator)

    if isinstance(outcome, str):
        view = LoginView(message=outcome, redirect_to=safe_redirect(form.get("redirectTo")))
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=view.model_dump(mode="json"),
        )

    response = RedirectResponse(outcome.redirect_path, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=outcome.token,
        max_age=authenticator.ttl_minutes * 60,
        httponly=True,
        samesite="lax",
        path="/",
    )
    return response


@router.post("/logout", status_code=status.HTTP_303_SEE_OTHER)
async def logout() -> Response:
    response = RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(SESSION_COOKIE, path="/")
    return response
