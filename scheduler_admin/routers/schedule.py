"""
Schedule router — JSON pass-through for per-term schedule generation.

Uses the caller's session token; the backend does all the work.
"""

from fastapi import APIRouter, Depends

from scheduler_admin.core.backend import BackendClient, BackendError, get_backend
from scheduler_admin.utils.response import error_response, success_response

router = APIRouter(prefix="/api/schedule", tags=["Schedule"])


@router.get("/{term_id}")
async def fetch_schedule(term_id: str, backend: BackendClient = Depends(get_backend)):
    try:
        data = await backend.fetch_schedule(term_id)
    except BackendError as e:
        return error_response(e.message, e.status_code)
    return success_response(data=data)


@router.post("/{term_id}")
async def generate_schedule(term_id: str, backend: BackendClient = Depends(get_backend)):
    try:
        data = await backend.generate_schedule(term_id)
    except BackendError as e:
        return error_response(e.message, e.status_code)
    return success_response(data=data, message="Schedule generated")
