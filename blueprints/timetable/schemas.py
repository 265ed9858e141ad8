from __future__ import annotations
from datetime import time
from typing import Optional

from pydantic import Field, field_serializer, field_validator

from blueprints.core.schemas import WireModel, blank_to_none, hhmm


class EntryIn(WireModel):
    day_of_week: int = Field(ge=1, le=5)
    period_id: str = Field(min_length=1)
    class_id: str = Field(min_length=1)
    subject_id: str = Field(min_length=1)
    teacher_id: str = Field(min_length=1)
    room_id: str = Field(min_length=1)
    note: Optional[str] = None

    @field_validator("note", mode="before")
    @classmethod
    def _blank(cls, v):
        return blank_to_none(v)


class CheckIn(EntryIn):
    # id записи, которую редактируют (не конфликтует сама с собой)
    exclude_id: Optional[str] = None


class EntryOut(EntryIn):
    id: str


class ResolvedEntryOut(EntryOut):
    class_name: Optional[str] = None
    grade: Optional[int] = None
    section: Optional[str] = None
    subject_name: Optional[str] = None
    subject_short_name: Optional[str] = None
    subject_color: Optional[str] = None
    teacher_name: Optional[str] = None
    teacher_short_name: Optional[str] = None
    teacher_color: Optional[str] = None
    room_name: Optional[str] = None
    building: Optional[str] = None
    period_number: Optional[int] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @field_serializer("start_time", "end_time")
    def _fmt(self, v: Optional[time]):
        return hhmm(v)
