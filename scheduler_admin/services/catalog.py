"""
Course catalog helpers — ordering and search over the backend's course list.
"""

import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError

from scheduler_admin.schemas.academic import Course

logger = logging.getLogger(__name__)


def order_courses(courses: Iterable[Course], priority_prefix: str = "SE") -> List[Course]:
    """Courses whose code starts with `priority_prefix` first, each group sorted by code."""
    return sorted(
        courses,
        key=lambda c: (not c.courseCode.startswith(priority_prefix), c.courseCode),
    )


def search_courses(courses: Iterable[Course], query: Optional[str]) -> List[Course]:
    query = (query or "").strip().lower()
    if not query:
        return list(courses)
    return [
        c for c in courses
        if query in c.courseCode.lower() or query in (c.name or "").lower()
    ]


def parse_courses(raw: Optional[list]) -> List[Course]:
    courses = []
    for item in raw or []:
        try:
            courses.append(Course.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed course %r (%d validation errors)", item, e.error_count())
    return courses
