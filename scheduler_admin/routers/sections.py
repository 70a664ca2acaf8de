from fastapi import APIRouter, Depends, Request

from scheduler_admin.core.backend import BackendClient, BackendError, get_backend
from scheduler_admin.core.security import require_login
from scheduler_admin.core.templates import templates
from scheduler_admin.services.calendar import build_section_map

router = APIRouter(prefix="/sections", tags=["Sections"], dependencies=[Depends(require_login)])


@router.get("/{section_id}")
async def section_detail(
    request: Request,
    section_id: str,
    backend: BackendClient = Depends(get_backend),
):
    """Single section with its sessions, linked from calendar cells."""
    section, raw, error = None, None, None
    try:
        raw = await backend.fetch_section(section_id)
    except BackendError as e:
        error = e.message

    if isinstance(raw, dict):
        section = build_section_map([raw]).get(str(raw.get("_id") or raw.get("id") or ""))

    return templates.TemplateResponse(
        request,
        "section_detail.html",
        {
            "section": section,
            "section_id": section_id,
            "capacity": raw.get("maxCapacity") if isinstance(raw, dict) else None,
            "assistants": raw.get("assignedAssistants") if isinstance(raw, dict) else None,
            "error": error,
        },
        status_code=200 if section else 404,
    )
