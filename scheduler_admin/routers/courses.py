"""
Courses router — read-only catalog browser.
"""

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from scheduler_admin.core.backend import BackendClient, BackendError, get_backend
from scheduler_admin.core.config import Settings, get_settings
from scheduler_admin.core.security import require_login
from scheduler_admin.core.templates import templates
from scheduler_admin.schemas.academic import Course
from scheduler_admin.services.catalog import order_courses, parse_courses, search_courses

router = APIRouter(prefix="/courses", tags=["Courses"], dependencies=[Depends(require_login)])


@router.get("")
async def list_courses(
    request: Request,
    q: str = "",
    backend: BackendClient = Depends(get_backend),
    settings: Settings = Depends(get_settings),
):
    courses, error = [], None
    try:
        courses = order_courses(parse_courses(await backend.fetch_courses()), settings.PRIORITY_COURSE_PREFIX)
    except BackendError as e:
        error = e.message or "Failed to load courses"

    return templates.TemplateResponse(
        request,
        "courses.html",
        {"courses": search_courses(courses, q), "search": q, "error": error},
    )


@router.get("/{course_code}")
async def course_detail(
    request: Request,
    course_code: str,
    backend: BackendClient = Depends(get_backend),
):
    course, error = None, None
    try:
        course = Course.model_validate(await backend.fetch_course(course_code))
    except BackendError as e:
        error = e.message
    except ValidationError:
        error = f"Course {course_code} not found"

    return templates.TemplateResponse(
        request,
        "course_detail.html",
        {"course": course, "course_code": course_code, "error": error},
        status_code=200 if course else 404,
    )
