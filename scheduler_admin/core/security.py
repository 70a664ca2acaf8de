"""
Security module — Auth controller + route guard.

Auth Flow:
1. Admin submits email/password to the console
2. Console forwards them to the backend's /auth/login
3. Backend answers with an accessToken
4. Token is stored in the session; every backend call sends it as a Bearer token
5. Logout (or any 401 from the backend) clears it

The console never validates tokens itself; the backend is the authority.
"""

import logging

from fastapi import Depends

from scheduler_admin.core.backend import BackendClient, BackendError, get_backend
from scheduler_admin.core.session import SessionStore, get_session_store

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MARKER = "Invalid credentials"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


class AuthenticationFailed(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class LoginRequired(Exception):
    """Raised by the route guard; handled in main.py as a redirect to /login."""


def friendly_login_error(message: str | None) -> str:
    if not message:
        return "Login failed"
    if INVALID_CREDENTIALS_MARKER in message:
        return INVALID_CREDENTIALS_MESSAGE
    return message


# ---------------------------------------------------------------------------
# Auth controller
# ---------------------------------------------------------------------------
class AuthController:
    def __init__(self, store: SessionStore, backend: BackendClient):
        self.store = store
        self.backend = backend

    @property
    def is_authenticated(self) -> bool:
        return self.store.is_authenticated

    async def login(self, email: str, password: str) -> None:
        logger.info("Login attempt for %s", email)
        try:
            token = await self.backend.login(email, password)
        except BackendError as e:
            self.store.clear_token()
            message = friendly_login_error(e.message)
            logger.warning("Failed login attempt for %s: %s", email, e.message)
            raise AuthenticationFailed(message) from e
        self.store.set_token(token)
        logger.info("%s logged in", email)

    def logout(self) -> None:
        self.store.clear_token()
        self.store.clear_wizard()


def get_auth_controller(
    store: SessionStore = Depends(get_session_store),
    backend: BackendClient = Depends(get_backend),
) -> AuthController:
    return AuthController(store, backend)


# ---------------------------------------------------------------------------
# Route guard dependency
# ---------------------------------------------------------------------------
def require_login(store: SessionStore = Depends(get_session_store)) -> SessionStore:
    """
    Usage:
        @router.get("/dashboard")
        async def dashboard(store=Depends(require_login)):
    """
    if not store.is_authenticated:
        raise LoginRequired()
    return store
