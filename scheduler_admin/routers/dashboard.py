"""
Dashboard router — hosts the scheduling wizard.

Every action POSTs to its own endpoint. Successful actions redirect back to
GET /dashboard; failed actions re-render the current step with the inline error.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import RedirectResponse

from scheduler_admin.core.backend import BackendClient, get_backend
from scheduler_admin.core.config import Settings, get_settings
from scheduler_admin.core.security import require_login
from scheduler_admin.core.session import SessionStore
from scheduler_admin.core.templates import templates
from scheduler_admin.services.wizard import STEP_LABELS, YEAR_LEVELS, WizardController, WizardStep

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def get_wizard(
    store: SessionStore = Depends(require_login),
    backend: BackendClient = Depends(get_backend),
    settings: Settings = Depends(get_settings),
) -> WizardController:
    return WizardController(store, backend, settings)


def _back_to_dashboard() -> RedirectResponse:
    return RedirectResponse("/dashboard", status_code=status.HTTP_303_SEE_OTHER)


async def render_wizard(
    request: Request,
    wizard: WizardController,
    search: Optional[str] = None,
    status_code: int = 200,
):
    await wizard.load_step(search)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "wizard": wizard,
            "steps": list(STEP_LABELS.items()),
            "Step": WizardStep,
            "year_levels": YEAR_LEVELS,
            "search": search or "",
        },
        status_code=status_code,
    )


@router.get("")
async def dashboard(
    request: Request,
    q: Optional[str] = None,
    wizard: WizardController = Depends(get_wizard),
):
    return await render_wizard(request, wizard, search=q)


# ═══════════════════════════════════════════════════════════
# TERM
# ═══════════════════════════════════════════════════════════

@router.post("/terms")
async def create_term(
    request: Request,
    name: str = Form(""),
    start_date: str = Form(""),
    end_date: str = Form(""),
    wizard: WizardController = Depends(get_wizard),
):
    if await wizard.create_term(name, start_date, end_date):
        return _back_to_dashboard()
    return await render_wizard(request, wizard, status_code=400)


@router.post("/terms/{term_id}/delete")
async def delete_term(request: Request, term_id: str, wizard: WizardController = Depends(get_wizard)):
    if await wizard.delete_term(term_id):
        return _back_to_dashboard()
    return await render_wizard(request, wizard, status_code=400)


@router.post("/terms/{term_id}/select")
async def select_term(term_id: str, wizard: WizardController = Depends(get_wizard)):
    wizard.select_term(term_id)
    return _back_to_dashboard()


@router.post("/next")
async def next_step(request: Request, wizard: WizardController = Depends(get_wizard)):
    if wizard.next_from_term():
        return _back_to_dashboard()
    return await render_wizard(request, wizard, status_code=400)


# ═══════════════════════════════════════════════════════════
# EXCEL
# ═══════════════════════════════════════════════════════════

@router.post("/back")
async def back(wizard: WizardController = Depends(get_wizard)):
    if wizard.step == WizardStep.EXCEL:
        wizard.back_to_term()
    return _back_to_dashboard()


@router.post("/upload")
async def upload(
    request: Request,
    term_id: str = Form(""),
    file: Optional[UploadFile] = File(None),
    wizard: WizardController = Depends(get_wizard),
):
    content = await file.read() if file is not None else b""
    filename = file.filename if file is not None else None
    content_type = file.content_type if file is not None else None

    ok = await wizard.upload(filename, content, content_type, term_id or None)
    # the import summary is only shown on this response
    return await render_wizard(request, wizard, status_code=200 if ok else 400)


# ═══════════════════════════════════════════════════════════
# SELECT
# ═══════════════════════════════════════════════════════════

@router.post("/select")
async def submit_selection(request: Request, wizard: WizardController = Depends(get_wizard)):
    form = await request.form()
    checked = [str(v) for v in form.getlist("course")]
    counts = {
        key[len("count_"):]: str(value)
        for key, value in form.items()
        if key.startswith("count_")
    }
    capacity = form.get("default_capacity")

    if await wizard.submit_selection(checked, counts, str(capacity) if capacity is not None else None):
        return _back_to_dashboard()
    return await render_wizard(request, wizard, status_code=400)


# ═══════════════════════════════════════════════════════════
# CALENDAR / RESET
# ═══════════════════════════════════════════════════════════

@router.post("/year")
async def calendar_year(year: str = Form(""), wizard: WizardController = Depends(get_wizard)):
    if wizard.step == WizardStep.CALENDAR:
        wizard.set_calendar_year(year)
    return _back_to_dashboard()


@router.post("/start-over")
async def start_over(wizard: WizardController = Depends(get_wizard)):
    await wizard.start_over()
    return _back_to_dashboard()
