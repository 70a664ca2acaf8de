"""
Pydantic schemas for academic structure as returned by the scheduling backend.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import date
from dateutil import parser  # ISO timestamps with Z suffix


def _id_field():
    return Field(validation_alias=AliasChoices("id", "_id"))


def _as_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return parser.isoparse(value).date()
    except ValueError:
        return None


# ---- Term ----
class Term(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = _id_field()
    name: str
    startDate: str
    endDate: str
    isActive: bool = False

    @property
    def start_day(self) -> Optional[date]:
        return _as_date(self.startDate)

    @property
    def end_day(self) -> Optional[date]:
        return _as_date(self.endDate)


class TermCreate(BaseModel):
    name: str
    startDate: date
    endDate: date


# ---- Course ----
class Course(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = _id_field()
    courseCode: str
    name: str = ""
    theoreticalSessions: int = 0
    laboratorySessions: int = 0
    description: Optional[str] = None
    yearLevel: Optional[int] = None
    department: Optional[str] = None
    prerequisites: Optional[List[str]] = None
