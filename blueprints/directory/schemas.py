from __future__ import annotations
from datetime import time
from typing import Optional, Union

from pydantic import Field, field_serializer, field_validator, model_validator

from blueprints.core.schemas import WireModel, blank_to_none, hhmm
from models import join_list

# ---------- Classes ----------
class ClassIn(WireModel):
    name: str = Field(min_length=1, max_length=100)
    grade: Optional[int] = Field(None, ge=1, le=13)
    section: Optional[str] = Field(None, max_length=20)
    head_teacher: Optional[str] = Field(None, max_length=255)
    student_count: int = Field(0, ge=0)

class ClassOut(ClassIn):
    id: str

# ---------- Teachers ----------
class TeacherIn(WireModel):
    name: str = Field(min_length=1, max_length=255)
    short_name: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    # список или строка через запятую; хранится строкой
    subjects: Optional[str] = None
    classes: Optional[str] = None
    color: str = Field("#3498db", max_length=20)
    ldap_username: Optional[str] = Field(None, max_length=100)

    @field_validator("subjects", "classes", mode="before")
    @classmethod
    def _joined(cls, v: Union[str, list, None]):
        return join_list(v)

    @field_validator("ldap_username", "email", mode="before")
    @classmethod
    def _strip(cls, v):
        v = blank_to_none(v)
        return v.strip() if isinstance(v, str) else v

class TeacherOut(TeacherIn):
    id: str

# ---------- Rooms ----------
class RoomIn(WireModel):
    name: str = Field(min_length=1, max_length=100)
    building: Optional[str] = Field(None, max_length=50)
    floor: Optional[int] = None
    capacity: int = Field(30, ge=0)
    type: str = Field("classroom", max_length=30)

class RoomOut(RoomIn):
    id: str

# ---------- Subjects ----------
class SubjectIn(WireModel):
    name: str = Field(min_length=1, max_length=255)
    short_name: Optional[str] = Field(None, max_length=50)
    color: str = Field("#2ecc71", max_length=20)

class SubjectOut(SubjectIn):
    id: str

# ---------- Periods ----------
class PeriodIn(WireModel):
    number: int = Field(ge=1)
    start_time: time
    end_time: time
    name: Optional[str] = Field(None, max_length=100)
    is_break: bool = False

    @model_validator(mode="after")
    def check_range(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self

class PeriodOut(PeriodIn):
    id: str

    @field_serializer("start_time", "end_time")
    def _fmt(self, v: time):
        return hhmm(v)


# kind -> (In, Out)
SCHEMAS = {
    "classes": (ClassIn, ClassOut),
    "teachers": (TeacherIn, TeacherOut),
    "rooms": (RoomIn, RoomOut),
    "subjects": (SubjectIn, SubjectOut),
    "periods": (PeriodIn, PeriodOut),
}
