from datetime import datetime, time, date
from typing import Iterable
from uuid import uuid4

from sqlalchemy import (
    UniqueConstraint, Index, Boolean, Date, DateTime, Time,
    Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from extensions import db


def new_id() -> str:
    return str(uuid4())


# ---------- comma-joined списки (teacher.subjects / teacher.classes) ----------
def split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def join_list(value: str | Iterable[str] | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        items = split_list(value)
    else:
        items = [str(v).strip() for v in value if str(v).strip()]
    return ", ".join(items) if items else None


# ---------- Reference data ----------
# Внешних ключей на уровне БД нет: удаление справочника, на который ещё
# ссылаются записи расписания, разрешено (висячие id остаются).

class SchoolClass(db.Model):
    __tablename__ = "classes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    grade: Mapped[int | None] = mapped_column(Integer)
    section: Mapped[str | None] = mapped_column(String(20))
    head_teacher: Mapped[str | None] = mapped_column(String(255))
    student_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<SchoolClass {self.name}>"


class Teacher(db.Model):
    __tablename__ = "teachers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[str | None] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(255))
    subjects: Mapped[str | None] = mapped_column(Text)
    classes: Mapped[str | None] = mapped_column(Text)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default="#3498db")
    ldap_username: Mapped[str | None] = mapped_column(String(100), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Teacher {self.name}>"


class Room(db.Model):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    building: Mapped[str | None] = mapped_column(String(50))
    floor: Mapped[int | None] = mapped_column(Integer)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    type: Mapped[str] = mapped_column(String(30), nullable=False, default="classroom")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Subject(db.Model):
    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[str | None] = mapped_column(String(50))
    color: Mapped[str] = mapped_column(String(20), nullable=False, default="#2ecc71")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Period(db.Model):
    __tablename__ = "periods"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    is_break: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    name: Mapped[str | None] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("number", name="uq_periods_number"),
    )


# ---------- Scheduling ----------
class TimetableEntry(db.Model):
    __tablename__ = "timetable_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)  # 1=Mon .. 5=Fri
    period_id: Mapped[str] = mapped_column(String(36), nullable=False)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    room_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    # последний рубеж против гонки check-then-write: три независимых ключа по слоту
    __table_args__ = (
        UniqueConstraint("day_of_week", "period_id", "class_id", name="uq_timetable_slot_class"),
        UniqueConstraint("day_of_week", "period_id", "teacher_id", name="uq_timetable_slot_teacher"),
        UniqueConstraint("day_of_week", "period_id", "room_id", name="uq_timetable_slot_room"),
        Index("ix_timetable_slot", "day_of_week", "period_id"),
    )


class Substitution(db.Model):
    __tablename__ = "substitutions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    period_id: Mapped[str] = mapped_column(String(36), nullable=False)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    original_teacher_id: Mapped[str | None] = mapped_column(String(36))
    # None -> урок отменён
    substitute_teacher_id: Mapped[str | None] = mapped_column(String(36), index=True)
    # None -> как в основном расписании
    subject_id: Mapped[str | None] = mapped_column(String(36))
    room_id: Mapped[str | None] = mapped_column(String(36))
    reason: Mapped[str | None] = mapped_column(Text)
    note: Mapped[str | None] = mapped_column(Text)
    cancelled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(100))


# kind (URL-сегмент) -> модель справочника
REFERENCE_MODELS = {
    "classes": SchoolClass,
    "teachers": Teacher,
    "rooms": Room,
    "subjects": Subject,
    "periods": Period,
}
