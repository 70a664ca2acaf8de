"""
IEU Course Scheduler — admin console
FastAPI entry point.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from scheduler_admin.core.config import settings
from scheduler_admin.core.logging import configure_logging
from scheduler_admin.core.security import LoginRequired
from scheduler_admin.core.session import SessionStore
from scheduler_admin.routers import auth, courses, dashboard, schedule, sections
from scheduler_admin.utils.response import error_response

configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    description="Administrative console for the university course scheduling service",
    version="1.0.0",
    debug=settings.DEBUG,
)

# Signed cookie session (accessToken, dashboardStep, wizard state)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    session_cookie=settings.SESSION_COOKIE,
    same_site="lax",
)

# Include routers
app.include_router(auth.router)
app.include_router(courses.router)
app.include_router(dashboard.router)
app.include_router(sections.router)
app.include_router(schedule.router)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)


@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException):
    if request.url.path.startswith("/api/") or exc.status_code != status.HTTP_404_NOT_FOUND:
        return error_response(str(exc.detail), exc.status_code)
    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)


@app.get("/")
async def root(request: Request):
    target = "/dashboard" if SessionStore(request.session).is_authenticated else "/login"
    return RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)


@app.get("/api/health")
async def health():
    return {"status": "healthy", "name": settings.APP_NAME, "backend_url": settings.BACKEND_URL}
