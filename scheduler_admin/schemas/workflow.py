"""
Pydantic schemas for the scheduling workflow: bulk schedule requests and section imports.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, List


# ---- Bulk Schedule ----
class SectionPair(BaseModel):
    courseId: str
    expectedStudents: int = Field(gt=0)


class BulkScheduleRequest(BaseModel):
    termId: str
    sections: List[SectionPair]
    defaultCapacity: int = 45


# ---- Section Import ----
class UploadDetail(BaseModel):
    identifier: str = ""
    reason: str = ""

    # row numbers, nulls and nested values all come back from the importer
    @field_validator("identifier", "reason", mode="before")
    @classmethod
    def as_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class UploadResult(BaseModel):
    created: int = 0
    skipped: int = 0
    details: List[UploadDetail] = []

    @property
    def summary(self) -> str:
        return f"Created: {self.created}, Skipped: {self.skipped}"
