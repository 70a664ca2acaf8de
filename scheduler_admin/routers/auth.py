"""
Auth router — Login form, Logout.

Rules:
- Credentials are checked by the backend; the console only stores the token
- Empty fields are rejected before any backend call
- Already-authenticated admins skip the login form
"""

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from scheduler_admin.core.security import AuthController, AuthenticationFailed, get_auth_controller
from scheduler_admin.core.session import SessionStore, get_session_store
from scheduler_admin.core.templates import templates
from scheduler_admin.schemas.auth import UserLogin

router = APIRouter(tags=["Authentication"])


def _login_page(request: Request, error: str | None = None, email: str = "", status_code: int = 200):
    return templates.TemplateResponse(
        request, "login.html", {"error": error, "email": email}, status_code=status_code,
    )


@router.get("/login")
async def login_form(request: Request, store: SessionStore = Depends(get_session_store)):
    if store.is_authenticated:
        return RedirectResponse("/dashboard", status_code=status.HTTP_303_SEE_OTHER)
    return _login_page(request)


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    auth: AuthController = Depends(get_auth_controller),
):
    try:
        body = UserLogin(email=email.strip(), password=password)
    except ValidationError:
        return _login_page(request, "Email and password are required.", email, 400)
    if not body.email or not body.password:
        return _login_page(request, "Email and password are required.", email, 400)

    try:
        await auth.login(body.email, body.password)
    except AuthenticationFailed as e:
        return _login_page(request, e.message, email, 401)

    return RedirectResponse("/dashboard", status_code=status.HTTP_303_SEE_OTHER)


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(auth: AuthController = Depends(get_auth_controller)):
    auth.logout()
    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
