from __future__ import annotations
import datetime as dt
from typing import Optional

from pydantic import Field, field_serializer, field_validator, model_validator

from blueprints.core.schemas import WireModel, blank_to_none, hhmm


class SubstitutionIn(WireModel):
    date: dt.date
    period_id: str = Field(min_length=1)
    class_id: str = Field(min_length=1)
    original_teacher_id: Optional[str] = None
    # None -> урок отменён
    substitute_teacher_id: Optional[str] = None
    # None -> как в основном расписании
    subject_id: Optional[str] = None
    room_id: Optional[str] = None
    reason: Optional[str] = None
    note: Optional[str] = None
    cancelled: bool = False

    @field_validator("original_teacher_id", "substitute_teacher_id", "subject_id",
                     "room_id", "reason", "note", mode="before")
    @classmethod
    def _blank(cls, v):
        return blank_to_none(v)

    @model_validator(mode="after")
    def _no_substitute_means_cancelled(self):
        if self.substitute_teacher_id is None:
            self.cancelled = True
        return self


class SubstitutionOut(SubstitutionIn):
    id: str
    created_by: Optional[str] = None
    original_teacher_name: Optional[str] = None
    original_teacher_short_name: Optional[str] = None
    substitute_teacher_name: Optional[str] = None
    substitute_teacher_short_name: Optional[str] = None
    subject_name: Optional[str] = None
    subject_short_name: Optional[str] = None
    subject_color: Optional[str] = None
    class_name: Optional[str] = None
    room_name: Optional[str] = None
    period_number: Optional[int] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None

    @field_serializer("start_time", "end_time")
    def _fmt(self, v: Optional[dt.time]):
        return hhmm(v)


class SubstitutionQuery(WireModel):
    date: Optional[dt.date] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None

    @field_validator("date", "start_date", "end_date", mode="before")
    @classmethod
    def _blank(cls, v):
        return blank_to_none(v)
