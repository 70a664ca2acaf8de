"""
Calendar transform — turns scheduled sections into a weekly day x time-slot grid.

Pipeline:
1. build_section_map()  sections from the backend -> SectionMapEntry per section id
2. build_calendar()     flatten sessions x days x slots, collect distinct slots
                        and days, bucket entries into [day][slot] cells
3. course_color()       deterministic background/text colour per course code

Everything here is a pure rebuild from its input: no conflict detection,
no merging, no mutation. Two sessions in the same day and slot share a cell.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

DAY_ORDER = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
EMPTY_CELL = "—"
NOT_AVAILABLE = "N/A"

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class DetailedSession:
    session_id: Optional[str]
    lesson_type: str
    days: Tuple[str, ...]
    time_slots: Tuple[Tuple[str, str], ...]
    classroom_name: str = NOT_AVAILABLE


@dataclass(frozen=True)
class SectionMapEntry:
    id: str
    course_code: str
    course_name: str
    section_number: Any
    lecturers: str = ""
    detailed_sessions: Tuple[DetailedSession, ...] = ()
    year_level: Optional[int] = None
    lecturer_names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TimeSlot:
    start: str
    end: str

    @property
    def key(self) -> str:
        return f"{self.start}-{self.end}"

    @property
    def label(self) -> str:
        return f"{self.start} - {self.end}"


@dataclass(frozen=True)
class CalendarEntry:
    day: str
    start: str
    end: str
    course_code: str
    section_number: Any
    lesson_type: str
    section_id: str = ""
    lecturers: Tuple[str, ...] = ()

    @property
    def is_lab(self) -> bool:
        return self.lesson_type == "Lab"

    @property
    def color(self) -> "CourseColor":
        return course_color(self.course_code)


@dataclass
class CalendarGrid:
    days: List[str] = field(default_factory=list)
    slots: List[TimeSlot] = field(default_factory=list)
    cells: Dict[str, Dict[str, List[CalendarEntry]]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.slots

    def cell(self, day: str, slot: TimeSlot) -> List[CalendarEntry]:
        return self.cells.get(day, {}).get(slot.key, [])

    def rows(self) -> List[Tuple[TimeSlot, List[List[CalendarEntry]]]]:
        return [(slot, [self.cell(day, slot) for day in self.days]) for slot in self.slots]


@dataclass(frozen=True)
class CourseColor:
    hue: int
    saturation: int
    lightness: int

    @property
    def background(self) -> str:
        return f"hsl({self.hue}, {self.saturation}%, {self.lightness}%)"

    @property
    def is_light(self) -> bool:
        return self.lightness > 60

    @property
    def text(self) -> str:
        return "#1a1a1a" if self.is_light else "#fff"


# =============================================================================
# TIME & DAY PARSING
# =============================================================================

def parse_time(value: Any) -> str:
    """
    Validate a wall-clock time and return it zero-padded as HH:MM.

    Slot ordering compares these strings directly, which is only correct
    for zero-padded values, so every time goes through here first.
    """
    match = _TIME_RE.match(str(value).strip()) if value is not None else None
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return f"{hour:02d}:{minute:02d}"


def normalize_day(value: Any) -> Optional[str]:
    """'Mon' / 'monday' / 'MONDAY' -> 'Mon'; None for anything else."""
    if not isinstance(value, str):
        return None
    day = value.strip()[:3].capitalize()
    return day if day in DAY_ORDER else None


# =============================================================================
# SECTION MAP
# =============================================================================

def _lecturer_name(lecturer: Any) -> str:
    if isinstance(lecturer, dict):
        return str(lecturer.get("name") or lecturer.get("_id") or lecturer.get("id") or "")
    return str(lecturer)


def _detailed_session(session: dict) -> DetailedSession:
    slots = tuple(
        (slot.get("start"), slot.get("end"))
        for slot in session.get("timeSlots") or []
        if isinstance(slot, dict)
    )
    return DetailedSession(
        session_id=session.get("_id") or session.get("id"),
        lesson_type=session.get("lessonType") or "Lecture",
        days=tuple(session.get("days") or []),
        time_slots=slots,
        classroom_name=session.get("classroom") or NOT_AVAILABLE,
    )


def build_section_map(sections: Iterable[dict]) -> Dict[str, SectionMapEntry]:
    """Denormalize backend sections into a section map, rebuilt from scratch on every call."""
    section_map: Dict[str, SectionMapEntry] = {}
    for section in sections:
        section_id = str(section.get("_id") or section.get("id") or "")
        course = section.get("course") if isinstance(section.get("course"), dict) else {}
        year_level = course.get("yearLevel")
        if year_level is None:
            year_level = course.get("year")
        names = tuple(
            name for name in (_lecturer_name(l) for l in section.get("assignedLecturers") or []) if name
        )
        section_map[section_id] = SectionMapEntry(
            id=section_id,
            course_code=course.get("courseCode") or NOT_AVAILABLE,
            course_name=course.get("name") or NOT_AVAILABLE,
            section_number=section.get("sectionNumber"),
            lecturers=", ".join(names),
            lecturer_names=names,
            detailed_sessions=tuple(
                _detailed_session(s) for s in section.get("sessions") or [] if isinstance(s, dict)
            ),
            year_level=year_level,
        )
    return section_map


# =============================================================================
# GRID
# =============================================================================

def flatten_entries(section_map: Dict[str, SectionMapEntry]) -> List[CalendarEntry]:
    entries: List[CalendarEntry] = []
    for section in section_map.values():
        for session in section.detailed_sessions:
            for raw_day in session.days:
                day = normalize_day(raw_day)
                if day is None:
                    logger.warning("Section %s: skipping unknown day %r", section.id, raw_day)
                    continue
                for raw_start, raw_end in session.time_slots:
                    try:
                        start, end = parse_time(raw_start), parse_time(raw_end)
                    except ValueError as e:
                        logger.warning("Section %s: skipping slot: %s", section.id, e)
                        continue
                    entries.append(CalendarEntry(
                        day=day,
                        start=start,
                        end=end,
                        course_code=section.course_code,
                        section_number=section.section_number,
                        lesson_type=session.lesson_type,
                        section_id=section.id,
                        lecturers=section.lecturer_names,
                    ))
    return entries


def build_calendar(section_map: Dict[str, SectionMapEntry]) -> CalendarGrid:
    entries = flatten_entries(section_map)

    slots = sorted(
        {TimeSlot(e.start, e.end) for e in entries},
        key=lambda s: (s.start, s.end),
    )
    present = {e.day for e in entries}
    days = [day for day in DAY_ORDER if day in present]

    cells: Dict[str, Dict[str, List[CalendarEntry]]] = {
        day: {slot.key: [] for slot in slots} for day in days
    }
    for entry in entries:
        cells[entry.day][f"{entry.start}-{entry.end}"].append(entry)

    return CalendarGrid(days=days, slots=slots, cells=cells)


# =============================================================================
# COLOURS
# =============================================================================

def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def string_hash(text: str) -> int:
    """Rolling hash: h = ord(c) + (h * 31), with the multiply done in 32-bit arithmetic."""
    h = 0
    for ch in text:
        h = ord(ch) + (_to_int32(_to_int32(h) << 5) - h)
    return h


def course_color(course_code: str) -> CourseColor:
    return CourseColor(hue=abs(string_hash(course_code)) % 360, saturation=65, lightness=80)
