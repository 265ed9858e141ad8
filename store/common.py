from __future__ import annotations
from datetime import date
from typing import Any, Mapping, Optional

REFERENCE_KINDS = ("classes", "teachers", "rooms", "subjects", "periods")
TIMETABLE_AXES = ("class", "teacher", "room")

# для сообщений NotFound
LABELS = {
    "classes": "class",
    "teachers": "teacher",
    "rooms": "room",
    "subjects": "subject",
    "periods": "period",
    "timetable": "timetable entry",
    "substitutions": "substitution",
}

Row = Mapping[str, Any]


def check_kind(kind: str) -> None:
    if kind not in REFERENCE_KINDS:
        raise ValueError(f"unknown reference kind: {kind}")


def check_axis(axis: str) -> None:
    if axis not in TIMETABLE_AXES:
        raise ValueError(f"unknown timetable axis: {axis}")


# порядок выдачи справочников для in-memory бэкенда (в SQL — ORDER BY с тем же смыслом)
SORT_KEYS = {
    "classes": lambda r: (r.get("grade") or 0, r.get("section") or "", r.get("name") or ""),
    "teachers": lambda r: r.get("name") or "",
    "rooms": lambda r: (r.get("building") or "", r.get("name") or ""),
    "subjects": lambda r: r.get("name") or "",
    "periods": lambda r: r.get("number") or 0,
}


def _g(row: Optional[Row], key: str):
    return row.get(key) if row else None


def resolve_entry(entry: Row, school_class: Optional[Row], subject: Optional[Row],
                  teacher: Optional[Row], room: Optional[Row], period: Optional[Row]) -> dict:
    """Запись расписания + имена/цвета связанных справочников (висячие ссылки -> None)."""
    out = dict(entry)
    out.update(
        class_name=_g(school_class, "name"),
        grade=_g(school_class, "grade"),
        section=_g(school_class, "section"),
        subject_name=_g(subject, "name"),
        subject_short_name=_g(subject, "short_name"),
        subject_color=_g(subject, "color"),
        teacher_name=_g(teacher, "name"),
        teacher_short_name=_g(teacher, "short_name"),
        teacher_color=_g(teacher, "color"),
        room_name=_g(room, "name"),
        building=_g(room, "building"),
        period_number=_g(period, "number"),
        start_time=_g(period, "start_time"),
        end_time=_g(period, "end_time"),
    )
    return out


def resolve_substitution(sub: Row, original: Optional[Row], substitute: Optional[Row],
                         subject: Optional[Row], school_class: Optional[Row],
                         room: Optional[Row], period: Optional[Row]) -> dict:
    out = dict(sub)
    out.update(
        original_teacher_name=_g(original, "name"),
        original_teacher_short_name=_g(original, "short_name"),
        substitute_teacher_name=_g(substitute, "name"),
        substitute_teacher_short_name=_g(substitute, "short_name"),
        subject_name=_g(subject, "name"),
        subject_short_name=_g(subject, "short_name"),
        subject_color=_g(subject, "color"),
        class_name=_g(school_class, "name"),
        room_name=_g(room, "name"),
        period_number=_g(period, "number"),
        start_time=_g(period, "start_time"),
        end_time=_g(period, "end_time"),
    )
    return out


def in_range(d: date, on: Optional[date], start: Optional[date], end: Optional[date]) -> bool:
    # как в исходной системе: диапазон работает только если заданы обе границы
    if on is not None:
        return d == on
    if start is not None and end is not None:
        return start <= d <= end
    return True


def _number_key(row: Row):
    # висячий period -> None, такие строки идут первыми (как NULL в SQLite)
    number = row.get("period_number")
    return (number is not None, number or 0)


def sort_substitutions(rows: list[dict], newest_first: bool = False) -> list[dict]:
    rows = sorted(rows, key=_number_key)
    return sorted(rows, key=lambda r: r["date"], reverse=newest_first)


def sort_timetable(rows: list[dict]) -> list[dict]:
    return sorted(rows, key=lambda r: (r["day_of_week"], _number_key(r)))


def blank_record(model) -> dict:
    """Пустая запись с колонками модели и их скалярными default."""
    out: dict[str, Any] = {}
    for col in model.__table__.columns:
        default = col.default
        out[col.name] = default.arg if default is not None and default.is_scalar else None
    return out
