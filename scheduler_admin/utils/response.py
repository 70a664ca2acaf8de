"""
JSON envelope for the console's /api endpoints: {success, data, message}.
"""

from typing import Any, Optional

from fastapi.responses import JSONResponse


def success_response(data: Any = None, message: str = "Success") -> dict:
    return {"success": True, "data": data, "message": message}


def error_response(message: str, status_code: Optional[int] = None, data: Any = None) -> JSONResponse:
    """Backend failures keep the backend's status; a missing one means the backend gave no answer."""
    return JSONResponse(
        status_code=status_code or 502,
        content={"success": False, "data": data, "message": message},
    )
