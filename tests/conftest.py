import json
from urllib.parse import unquote

import httpx
import pytest
from fastapi.testclient import TestClient

from scheduler_admin.core.backend import get_backend_transport
from scheduler_admin.main import app

ADMIN_EMAIL = "admin@ieu.edu.tr"
ADMIN_PASSWORD = "secret"
TOKEN = "token-abc"


def make_section(section_id, code, number, sessions, term="T1", year=1, lecturers=("Dr. Kaya",)):
    return {
        "_id": section_id,
        "term": term,
        "course": {"_id": f"c-{code}", "courseCode": code, "name": f"{code} course", "yearLevel": year},
        "sectionNumber": number,
        "sessions": sessions,
        "maxCapacity": 45,
        "assignedLecturers": list(lecturers),
        "assignedAssistants": [],
    }


def make_session(lesson_type, days, slots, classroom="D-201"):
    return {
        "_id": f"s-{lesson_type}-{'-'.join(days)}",
        "lessonType": lesson_type,
        "days": list(days),
        "timeSlots": [{"start": s, "end": e} for s, e in slots],
        "classroom": classroom,
    }


class FakeBackend:
    """In-memory stand-in for the scheduling service, served through httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], tuple[int, dict]] = {}
        self.terms = [
            {"_id": "T1", "name": "Fall 2025", "startDate": "2025-09-15T00:00:00.000Z",
             "endDate": "2026-01-20T00:00:00.000Z", "isActive": True},
            {"_id": "T2", "name": "Spring 2026", "startDate": "2026-02-10T00:00:00.000Z",
             "endDate": "2026-06-10T00:00:00.000Z", "isActive": False},
        ]
        self.courses = [
            {"_id": "CS101", "courseCode": "CS 101", "name": "Intro to Programming",
             "theoreticalSessions": 3, "laboratorySessions": 2, "yearLevel": 1},
            {"_id": "SE201", "courseCode": "SE 201", "name": "Software Design",
             "theoreticalSessions": 3, "laboratorySessions": 0, "yearLevel": 2},
            {"_id": "MATH153", "courseCode": "MATH 153", "name": "Calculus",
             "theoreticalSessions": 4, "laboratorySessions": 0, "yearLevel": 1},
        ]
        self.sections = [
            make_section("sec-1", "CS 101", 1, [make_session("Lecture", ["Mon"], [("08:30", "10:20")])]),
            make_section("sec-2", "MATH 153", 1, [make_session("Lab", ["Wed"], [("13:30", "15:20")])]),
        ]
        self.upload_result = {"created": 12, "skipped": 2, "details": [{"identifier": "ROW5", "reason": "duplicate"}]}
        self.next_term_id = 100

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method=None, path=None):
        return [
            r for r in self.requests
            if (method is None or r.method == method) and (path is None or r.url.path == path)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, unquote(request.url.path)

        if (method, path) in self.failures:
            status, body = self.failures[(method, path)]
            return httpx.Response(status, json=body)

        if path == "/auth/login":
            body = json.loads(request.content)
            if body == {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}:
                return httpx.Response(201, json={"accessToken": TOKEN})
            return httpx.Response(401, json={"message": "Invalid credentials", "statusCode": 401})

        if request.headers.get("Authorization") != f"Bearer {TOKEN}":
            return httpx.Response(401, json={"message": "Unauthorized"})

        parts = path.strip("/").split("/")

        if parts == ["terms"]:
            if method == "GET":
                return httpx.Response(200, json=self.terms)
            body = json.loads(request.content)
            term = {"_id": f"T{self.next_term_id}", "isActive": False, **body}
            self.next_term_id += 1
            self.terms.append(term)
            return httpx.Response(201, json=term)
        if parts[0] == "terms" and method == "DELETE":
            self.terms = [t for t in self.terms if t["_id"] != parts[1]]
            return httpx.Response(200)

        if parts == ["courses"]:
            return httpx.Response(200, json=self.courses)
        if parts[0] == "courses":
            for course in self.courses:
                if course["courseCode"] == parts[1]:
                    return httpx.Response(200, json=course)
            return httpx.Response(404, json={"message": f"Course {parts[1]} not found"})

        if parts == ["sections"]:
            return httpx.Response(200, json=self.sections)
        if parts[:2] == ["sections", "term"]:
            term_id, year = parts[2], int(parts[4])
            matching = [
                s for s in self.sections
                if s["term"] == term_id and (s["course"] or {}).get("yearLevel") == year
            ]
            return httpx.Response(200, json=matching)
        if parts[0] == "sections":
            for section in self.sections:
                if section["_id"] == parts[1]:
                    if method == "DELETE":
                        self.sections.remove(section)
                        return httpx.Response(200)
                    return httpx.Response(200, json=section)
            return httpx.Response(404, json={"message": "Section not found"})

        if parts == ["schedule", "bulk"]:
            return httpx.Response(201, json={"schedule": [], "conflicts": []})
        if parts[0] == "schedule":
            return httpx.Response(200, json={"schedule": [], "conflicts": [], "termId": parts[1]})

        if parts == ["initial-load", "sections"]:
            return httpx.Response(201, json=self.upload_result)

        return httpx.Response(404, json={"message": "Not found"})


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    app.dependency_overrides[get_backend_transport] = lambda: backend.transport
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin(client):
    response = client.post(
        "/login", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}, follow_redirects=False,
    )
    assert response.status_code == 303
    return client
