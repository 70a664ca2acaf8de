"""
Backend client — authenticated HTTP calls to the scheduling service.

Every call:
1. Requires a bearer token (raises NotAuthenticated before any I/O otherwise)
2. Sends Authorization: Bearer <token>
3. On non-2xx, extracts `message` from a JSON error body or uses a fallback
4. On 401, clears the stored token and raises SessionExpired
5. On success, returns the parsed JSON untyped

Scheduling, conflict resolution and persistence all live in the backend.
"""

import json
import logging
from typing import Any, Callable, Optional

import httpx
from fastapi import Depends

from scheduler_admin.core.config import Settings, get_settings
from scheduler_admin.core.session import SessionStore, get_session_store

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------
class BackendError(Exception):
    """Non-success answer from the backend, or no answer at all."""

    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        self.status_code = status_code
        super().__init__(self.message)


class NotAuthenticated(BackendError):
    default_message = "Not authenticated"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, status_code=401)


class SessionExpired(NotAuthenticated):
    default_message = "Your session has expired. Please log in again."


class BackendUnavailable(BackendError):
    default_message = "Could not reach the scheduling service. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, status_code=503)


def extract_error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict):
        return fallback
    message = body.get("message")
    if isinstance(message, str) and message:
        return message
    if isinstance(message, (list, dict)) and message:
        return json.dumps(message)
    return fallback


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class BackendClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._transport = transport
        self._timeout = timeout
        self._on_unauthorized = on_unauthorized

    def _client(self) -> httpx.AsyncClient:
        kwargs: dict[str, Any] = {"base_url": self.base_url}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        return httpx.AsyncClient(**kwargs)

    async def _request(
        self,
        method: str,
        path: str,
        fallback: str,
        *,
        auth: bool = True,
        **kwargs: Any,
    ) -> Any:
        headers = {}
        if auth:
            if not self.token:
                raise NotAuthenticated()
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            async with self._client() as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.error("%s %s: transport error: %s", method, path, e)
            raise BackendUnavailable() from e

        if auth and response.status_code == 401:
            logger.info("%s %s: token rejected, clearing session", method, path)
            if self._on_unauthorized is not None:
                self._on_unauthorized()
            raise SessionExpired()

        if not response.is_success:
            message = extract_error_message(response, fallback)
            logger.warning("%s %s failed (%s): %s", method, path, response.status_code, message)
            raise BackendError(message, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(fallback, status_code=response.status_code) from e

    # ---- auth ----
    async def login(self, email: str, password: str) -> str:
        data = await self._request(
            "POST", "/auth/login", "Login failed",
            auth=False, json={"email": email, "password": password},
        )
        token = data.get("accessToken") if isinstance(data, dict) else None
        if not token:
            raise BackendError("No access token returned")
        return token

    # ---- terms ----
    async def fetch_terms(self) -> list:
        return await self._request("GET", "/terms", "Failed to fetch terms")

    async def create_term(self, name: str, start_date: str, end_date: str) -> Any:
        return await self._request(
            "POST", "/terms", "Failed to create term",
            json={"name": name, "startDate": start_date, "endDate": end_date},
        )

    async def delete_term(self, term_id: str) -> None:
        await self._request("DELETE", f"/terms/{term_id}", "Failed to delete term")

    # ---- courses ----
    async def fetch_courses(self) -> list:
        return await self._request("GET", "/courses", "Failed to fetch courses")

    async def fetch_course(self, course_code: str) -> Any:
        return await self._request("GET", f"/courses/{course_code}", "Failed to fetch course details")

    # ---- sections ----
    async def fetch_all_sections(self) -> list:
        return await self._request("GET", "/sections", "Failed to fetch all sections")

    async def fetch_sections_by_term(self, term_id: str) -> list:
        sections = await self._request("GET", "/sections", "Failed to fetch sections")
        return [s for s in sections or [] if s.get("term") == term_id]

    async def fetch_sections_by_term_and_year(self, term_id: str, year_level: int) -> list:
        sections = await self._request(
            "GET", f"/sections/term/{term_id}/year/{year_level}",
            "Failed to fetch sections by term and yearLevel",
        )
        # course is null when the backend could not resolve it
        return [s for s in sections or [] if s.get("course")]

    async def fetch_section(self, section_id: str) -> Any:
        return await self._request("GET", f"/sections/{section_id}", "Failed to fetch section details")

    async def delete_section(self, section_id: str) -> None:
        await self._request("DELETE", f"/sections/{section_id}", "Failed to delete section")

    # ---- scheduling ----
    async def post_bulk_schedule(self, payload: dict) -> Any:
        return await self._request(
            "POST", "/schedule/bulk", "Failed to generate schedule from Excel", json=payload,
        )

    async def upload_sections(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str],
        term_id: str,
    ) -> Any:
        files = {"file": (filename, content, content_type or "application/octet-stream")}
        return await self._request(
            "POST", "/initial-load/sections", "Failed to upload Excel for section import",
            data={"termId": term_id}, files=files,
        )

    async def generate_schedule(self, term_id: str) -> Any:
        return await self._request("POST", f"/schedule/{term_id}", "Failed to generate schedule")

    async def fetch_schedule(self, term_id: str) -> Any:
        return await self._request("GET", f"/schedule/{term_id}", "Failed to fetch schedule")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_backend_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport override hook; None uses the real network."""
    return None


def get_backend(
    store: SessionStore = Depends(get_session_store),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_backend_transport),
    settings: Settings = Depends(get_settings),
) -> BackendClient:
    return BackendClient(
        settings.BACKEND_URL,
        token=store.token,
        transport=transport,
        timeout=settings.REQUEST_TIMEOUT,
        on_unauthorized=store.clear_token,
    )
