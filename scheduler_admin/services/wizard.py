"""
Wizard controller — the four-step scheduling workflow hosted by the dashboard.

    TERM ──next──▶ EXCEL ──upload ok──▶ SELECT ──bulk schedule ok──▶ CALENDAR
      ▲              │                                                  │
      └────back──────┘◀───────────────────start over────────────────────┘

Rules:
- The step is persisted in the session and defaults to TERM when missing or invalid
- Every transition writes the step back
- Backend and validation failures become an inline, step-scoped error; nothing retries
- "Start over" deletes every section, then clears all wizard state
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from scheduler_admin.core.backend import BackendClient, BackendError, SessionExpired
from scheduler_admin.core.config import Settings
from scheduler_admin.core.session import SessionStore
from scheduler_admin.schemas.academic import Course, Term, TermCreate
from scheduler_admin.schemas.workflow import BulkScheduleRequest, SectionPair, UploadResult
from scheduler_admin.services.calendar import CalendarGrid, SectionMapEntry, build_calendar, build_section_map
from scheduler_admin.services.catalog import order_courses, parse_courses, search_courses

logger = logging.getLogger(__name__)

YEAR_LEVELS = (1, 2, 3, 4)
ALLOWED_UPLOAD_EXTENSIONS = (".xlsx", ".xls")


class WizardStep(str, Enum):
    TERM = "term"
    EXCEL = "excel"
    SELECT = "select"
    CALENDAR = "calendar"

    @classmethod
    def load(cls, raw: Optional[str]) -> "WizardStep":
        try:
            return cls(raw)
        except ValueError:
            return cls.TERM

    @property
    def label(self) -> str:
        return STEP_LABELS[self]


STEP_LABELS = {
    WizardStep.TERM: "Term Management",
    WizardStep.EXCEL: "Excel Upload",
    WizardStep.SELECT: "Course Selection",
    WizardStep.CALENDAR: "Calendar",
}


class WizardState(BaseModel):
    step: WizardStep = WizardStep.TERM
    selected_term_id: Optional[str] = None
    calendar_year: int = Field(1, ge=1, le=4)
    default_capacity: int = Field(45, gt=0)
    # first term is preselected once per wizard run
    term_preselected: bool = False


class WizardValidationError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------
def parse_positive_int(value) -> Optional[int]:
    text = str(value).strip() if value is not None else ""
    if not text.isdecimal():
        return None
    try:
        number = int(text)
    except ValueError:
        return None
    return number if number > 0 else None


def _count(result, key: str) -> int:
    value = result.get(key) if isinstance(result, dict) else None
    return value if isinstance(value, int) and value >= 0 else 0


def build_bulk_request(
    term_id: Optional[str],
    checked: List[str],
    counts: Dict[str, str],
    default_capacity: int,
) -> BulkScheduleRequest:
    """
    Build the bulk schedule body from the selection form, without touching the network.

    `checked` keeps the order the courses were listed in.
    """
    checked = list(dict.fromkeys(c for c in checked if c))
    if not checked:
        raise WizardValidationError("Please select at least one course and enter expected student numbers.")

    pairs = []
    for course_id in checked:
        expected = parse_positive_int(counts.get(course_id))
        if expected is None:
            raise WizardValidationError(
                "Expected students must be a positive whole number for every selected course."
            )
        pairs.append(SectionPair(courseId=course_id, expectedStudents=expected))

    if not term_id:
        raise WizardValidationError("No term selected. Please go back and select a term.")

    return BulkScheduleRequest(termId=term_id, sections=pairs, defaultCapacity=default_capacity)


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------
class WizardController:
    def __init__(self, store: SessionStore, backend: BackendClient, settings: Settings):
        self.store = store
        self.backend = backend
        self.settings = settings
        self.state = self._load_state()

        self.error: Optional[str] = None
        self.terms: List[Term] = []
        self.courses: List[Course] = []
        self.upload_result: Optional[UploadResult] = None
        self.section_map: Dict[str, SectionMapEntry] = {}
        self.grid: CalendarGrid = CalendarGrid()
        # last submitted selection form, re-shown when the submit fails
        self.checked: List[str] = []
        self.counts: Dict[str, str] = {}
        self.capacity_input: Optional[str] = None

    # ---- persistence ----
    def _load_state(self) -> WizardState:
        values = self.store.wizard
        values.setdefault("default_capacity", self.settings.DEFAULT_CAPACITY)
        values["step"] = WizardStep.load(self.store.step)
        try:
            return WizardState(**values)
        except ValidationError:
            logger.info("Discarding invalid wizard state")
            return WizardState(step=values["step"], default_capacity=self.settings.DEFAULT_CAPACITY)

    def _save(self) -> None:
        self.store.set_step(self.state.step.value)
        self.store.set_wizard(self.state.model_dump(exclude={"step"}))

    def transition(self, step: WizardStep) -> None:
        logger.debug("Wizard %s -> %s", self.state.step.value, step.value)
        self.state.step = step
        if step == WizardStep.CALENDAR:
            self.state.calendar_year = 1
        self._save()

    @property
    def step(self) -> WizardStep:
        return self.state.step

    @property
    def selected_term(self) -> Optional[Term]:
        for term in self.terms:
            if term.id == self.state.selected_term_id:
                return term
        return None

    def _fail(self, e: Exception) -> bool:
        self.error = getattr(e, "message", None) or str(e)
        return False

    # ---- TERM ----
    async def load_terms(self) -> bool:
        try:
            raw_terms = await self.backend.fetch_terms() or []
        except BackendError as e:
            return self._fail(e)
        self.terms = []
        for item in raw_terms:
            try:
                self.terms.append(Term.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed term %r", item)
        if not self.state.term_preselected:
            self.state.term_preselected = True
            if not self.state.selected_term_id and self.terms:
                self.state.selected_term_id = self.terms[0].id
            self._save()
        return True

    def select_term(self, term_id: str) -> None:
        self.state.selected_term_id = term_id or None
        self._save()

    async def create_term(self, name: str, start_date: str, end_date: str) -> bool:
        self.error = None
        try:
            term = TermCreate(name=(name or "").strip(), startDate=start_date, endDate=end_date)
            if not term.name:
                raise WizardValidationError("Term name is required.")
            if term.endDate < term.startDate:
                raise WizardValidationError("End date must not be before start date.")
        except ValidationError:
            return self._fail(WizardValidationError("Name, start date and end date are required."))
        except WizardValidationError as e:
            return self._fail(e)

        try:
            await self.backend.create_term(term.name, term.startDate.isoformat(), term.endDate.isoformat())
        except BackendError as e:
            return self._fail(e)
        logger.info("Created term %s", term.name)
        return await self.load_terms()

    async def delete_term(self, term_id: str) -> bool:
        self.error = None
        try:
            await self.backend.delete_term(term_id)
        except BackendError as e:
            return self._fail(e)
        logger.info("Deleted term %s", term_id)
        if self.state.selected_term_id == term_id:
            self.state.selected_term_id = None
            self._save()
        return await self.load_terms()

    def next_from_term(self) -> bool:
        if not self.state.selected_term_id:
            return self._fail(WizardValidationError("Select a term to continue."))
        self.transition(WizardStep.EXCEL)
        return True

    # ---- EXCEL ----
    def back_to_term(self) -> None:
        self.transition(WizardStep.TERM)

    async def upload(
        self,
        filename: Optional[str],
        content: bytes,
        content_type: Optional[str],
        term_id: Optional[str] = None,
    ) -> bool:
        self.error = None
        self.upload_result = None
        if term_id:
            self.select_term(term_id)
        if not self.state.selected_term_id:
            return self._fail(WizardValidationError("Select a term before uploading."))
        if not filename or not content:
            return self._fail(WizardValidationError("Choose an Excel file to upload."))
        if not filename.lower().endswith(ALLOWED_UPLOAD_EXTENSIONS):
            return self._fail(WizardValidationError("Only .xlsx or .xls files can be uploaded."))

        try:
            result = await self.backend.upload_sections(
                filename, content, content_type, self.state.selected_term_id,
            )
        except BackendError as e:
            return self._fail(e)

        try:
            self.upload_result = UploadResult.model_validate(result or {})
        except ValidationError:
            # the sections are already created, so the step still advances
            logger.warning("Unexpected import summary %r", result)
            self.upload_result = UploadResult(created=_count(result, "created"), skipped=_count(result, "skipped"))
        logger.info("Section import for term %s: %s", self.state.selected_term_id, self.upload_result.summary)
        self.transition(WizardStep.SELECT)
        return True

    # ---- SELECT ----
    async def load_courses(self, search: Optional[str] = None) -> bool:
        try:
            courses = parse_courses(await self.backend.fetch_courses())
        except BackendError as e:
            return self._fail(e)
        ordered = order_courses(courses, self.settings.PRIORITY_COURSE_PREFIX)
        self.courses = search_courses(ordered, search)
        return True

    async def submit_selection(
        self,
        checked: List[str],
        counts: Dict[str, str],
        default_capacity: Optional[str] = None,
    ) -> bool:
        self.error = None
        self.checked, self.counts, self.capacity_input = list(checked), dict(counts), default_capacity
        try:
            if default_capacity not in (None, ""):
                capacity = parse_positive_int(default_capacity)
                if capacity is None:
                    raise WizardValidationError("Default capacity must be a positive whole number.")
                self.state.default_capacity = capacity
                self._save()
            request = build_bulk_request(
                self.state.selected_term_id, checked, counts, self.state.default_capacity,
            )
        except WizardValidationError as e:
            return self._fail(e)

        try:
            result = await self.backend.post_bulk_schedule(request.model_dump())
        except BackendError as e:
            return self._fail(e)

        conflicts = (result.get("conflicts") or []) if isinstance(result, dict) else []
        logger.info(
            "Bulk schedule for term %s: %d courses, %d conflicts",
            request.termId, len(request.sections), len(conflicts),
        )
        self.transition(WizardStep.CALENDAR)
        return True

    # ---- CALENDAR ----
    def set_calendar_year(self, year) -> None:
        year = parse_positive_int(year)
        self.state.calendar_year = year if year in YEAR_LEVELS else 1
        self._save()

    async def load_calendar(self) -> bool:
        self.section_map = {}
        self.grid = CalendarGrid()
        if not self.state.selected_term_id:
            return True
        try:
            sections = await self.backend.fetch_sections_by_term_and_year(
                self.state.selected_term_id, self.state.calendar_year,
            )
        except BackendError as e:
            return self._fail(e)

        scheduled = [s for s in sections if isinstance(s.get("sessions"), list) and s["sessions"]]
        self.section_map = build_section_map(scheduled)
        self.grid = build_calendar(self.section_map)
        return True

    async def start_over(self) -> None:
        """Delete every section in the system, then reset the wizard to TERM."""
        try:
            sections = await self.backend.fetch_all_sections() or []
            deleted = 0
            for section in sections:
                section_id = section.get("_id") or section.get("id")
                if not section_id:
                    continue
                try:
                    await self.backend.delete_section(section_id)
                    deleted += 1
                except SessionExpired:
                    raise
                except BackendError as e:
                    logger.error("Failed to delete section %s: %s", section_id, e.message)
            logger.info("Start over: deleted %d of %d sections", deleted, len(sections))
        except BackendError as e:
            logger.error("Failed to delete all sections: %s", e.message)
        finally:
            self.store.clear_wizard()
            self.state = WizardState(default_capacity=self.settings.DEFAULT_CAPACITY)
            self.error = None
            self.upload_result = None
            self.section_map = {}
            self.grid = CalendarGrid()

    # ---- view ----
    async def load_step(self, search: Optional[str] = None) -> None:
        """Fetch whatever the current step displays; errors stay inline."""
        error = self.error
        if self.step in (WizardStep.TERM, WizardStep.EXCEL):
            await self.load_terms()
        elif self.step == WizardStep.SELECT:
            await self.load_courses(search)
        elif self.step == WizardStep.CALENDAR:
            await self.load_calendar()
        # an action error takes precedence over a follow-up load error
        self.error = error or self.error
