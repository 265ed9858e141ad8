"""Durable entity store on Flask-SQLAlchemy.

Timetable writes check for conflicts before touching the session (queries
autoflush), then commit; the three slot unique constraints catch whatever
slips between check and commit.
"""
from __future__ import annotations
import logging
from datetime import date
from typing import Any, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from blueprints.constraints.services import check_conflict, ensure_no_conflict
from errors import ConflictError, DuplicateError, NotFound
from models import (
    REFERENCE_MODELS, Period, Room, SchoolClass, Subject, Substitution,
    Teacher, TimetableEntry,
)

from .common import LABELS, check_axis, check_kind, resolve_entry, resolve_substitution

log = logging.getLogger(__name__)

ORDER_BY = {
    "classes": (SchoolClass.grade, SchoolClass.section, SchoolClass.name),
    "teachers": (Teacher.name,),
    "rooms": (Room.building, Room.name),
    "subjects": (Subject.name,),
    "periods": (Period.number,),
}

_READONLY = ("id", "created_at")


def _row_to_dict(row) -> Optional[dict]:
    if row is None:
        return None
    return {attr.key: getattr(row, attr.key) for attr in sa.inspect(row).mapper.column_attrs}


def _columns(model, data: Mapping[str, Any]) -> dict:
    keys = {attr.key for attr in sa.inspect(model).column_attrs}
    return {k: v for k, v in data.items() if k in keys and k not in _READONLY}


class SqlEntityStore:
    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    def _commit_unique(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as ex:
            self.session.rollback()
            log.info("unique constraint violation: %s", ex.orig)
            raise DuplicateError("Unique constraint violation") from ex

    # ---------- reference data ----------
    def list_entities(self, kind: str) -> list[dict]:
        check_kind(kind)
        model = REFERENCE_MODELS[kind]
        rows = self.session.scalars(select(model).order_by(*ORDER_BY[kind])).all()
        return [_row_to_dict(r) for r in rows]

    def get_entity(self, kind: str, id_: str) -> Optional[dict]:
        check_kind(kind)
        return _row_to_dict(self.session.get(REFERENCE_MODELS[kind], id_))

    def count_entities(self, kind: str) -> int:
        check_kind(kind)
        model = REFERENCE_MODELS[kind]
        return self.session.scalar(select(func.count()).select_from(model)) or 0

    def create_entity(self, kind: str, data: Mapping[str, Any]) -> str:
        check_kind(kind)
        model = REFERENCE_MODELS[kind]
        row = model(**_columns(model, data))
        self.session.add(row)
        self._commit_unique()
        return row.id

    def update_entity(self, kind: str, id_: str, data: Mapping[str, Any]) -> None:
        check_kind(kind)
        model = REFERENCE_MODELS[kind]
        row = self.session.get(model, id_)
        if row is None:
            raise NotFound(LABELS[kind], id_)
        for key, value in _columns(model, data).items():
            setattr(row, key, value)
        self._commit_unique()

    def delete_entity(self, kind: str, id_: str) -> None:
        check_kind(kind)
        row = self.session.get(REFERENCE_MODELS[kind], id_)
        if row is None:
            raise NotFound(LABELS[kind], id_)
        self.session.delete(row)
        self.session.commit()

    # ---------- timetable ----------
    def get_entry(self, id_: str) -> Optional[dict]:
        return _row_to_dict(self.session.get(TimetableEntry, id_))

    def entries_in_slot(self, day_of_week: int, period_id: str,
                        exclude_id: Optional[str] = None) -> list[dict]:
        q = select(TimetableEntry).where(
            TimetableEntry.day_of_week == day_of_week,
            TimetableEntry.period_id == period_id,
        )
        if exclude_id is not None:
            q = q.where(TimetableEntry.id != exclude_id)
        return [_row_to_dict(r) for r in self.session.scalars(q)]

    def timetable_for(self, axis: str, id_: str) -> list[dict]:
        check_axis(axis)
        q = (select(TimetableEntry, SchoolClass, Subject, Teacher, Room, Period)
             .outerjoin(SchoolClass, SchoolClass.id == TimetableEntry.class_id)
             .outerjoin(Subject, Subject.id == TimetableEntry.subject_id)
             .outerjoin(Teacher, Teacher.id == TimetableEntry.teacher_id)
             .outerjoin(Room, Room.id == TimetableEntry.room_id)
             .outerjoin(Period, Period.id == TimetableEntry.period_id)
             .where(getattr(TimetableEntry, f"{axis}_id") == id_)
             .order_by(TimetableEntry.day_of_week, Period.number))
        return [resolve_entry(*(_row_to_dict(obj) for obj in row))
                for row in self.session.execute(q).all()]

    def _commit_entry(self, candidate: Mapping[str, Any], exclude_id: Optional[str] = None) -> None:
        try:
            self.session.commit()
        except IntegrityError as ex:
            # кто-то занял слот между проверкой и commit
            self.session.rollback()
            existing = self.entries_in_slot(candidate["day_of_week"], candidate["period_id"], exclude_id)
            reason = check_conflict(candidate, existing, exclude_id)
            log.warning("timetable slot constraint hit after check: %s", reason.code if reason else ex.orig)
            if reason is not None:
                raise ConflictError(reason.message, code=reason.code) from ex
            raise ConflictError("timetable slot already taken") from ex

    def add_entry(self, data: Mapping[str, Any]) -> str:
        fields = _columns(TimetableEntry, data)
        ensure_no_conflict(fields, self.entries_in_slot(fields["day_of_week"], fields["period_id"]))
        row = TimetableEntry(**fields)
        self.session.add(row)
        self._commit_entry(fields)
        return row.id

    def update_entry(self, id_: str, data: Mapping[str, Any]) -> None:
        row = self.session.get(TimetableEntry, id_)
        if row is None:
            raise NotFound(LABELS["timetable"], id_)
        fields = _columns(TimetableEntry, data)
        candidate = {**_row_to_dict(row), **fields}
        existing = self.entries_in_slot(candidate["day_of_week"], candidate["period_id"], exclude_id=id_)
        ensure_no_conflict(candidate, existing, exclude_id=id_)
        for key, value in fields.items():
            setattr(row, key, value)
        self._commit_entry(candidate, exclude_id=id_)

    def delete_entry(self, id_: str) -> None:
        row = self.session.get(TimetableEntry, id_)
        if row is None:
            raise NotFound(LABELS["timetable"], id_)
        self.session.delete(row)
        self.session.commit()

    # ---------- substitutions ----------
    def _sub_query(self):
        original = aliased(Teacher)
        substitute = aliased(Teacher)
        return (select(Substitution, original, substitute, Subject, SchoolClass, Room, Period)
                .outerjoin(original, original.id == Substitution.original_teacher_id)
                .outerjoin(substitute, substitute.id == Substitution.substitute_teacher_id)
                .outerjoin(Subject, Subject.id == Substitution.subject_id)
                .outerjoin(SchoolClass, SchoolClass.id == Substitution.class_id)
                .outerjoin(Room, Room.id == Substitution.room_id)
                .outerjoin(Period, Period.id == Substitution.period_id))

    def _resolve_subs(self, q) -> list[dict]:
        return [resolve_substitution(*(_row_to_dict(obj) for obj in row))
                for row in self.session.execute(q).all()]

    def get_substitution(self, id_: str) -> Optional[dict]:
        return _row_to_dict(self.session.get(Substitution, id_))

    def list_substitutions(self, on: Optional[date] = None, start: Optional[date] = None,
                           end: Optional[date] = None) -> list[dict]:
        q = self._sub_query()
        if on is not None:
            q = q.where(Substitution.date == on).order_by(Period.number)
        elif start is not None and end is not None:
            q = (q.where(Substitution.date >= start, Substitution.date <= end)
                 .order_by(Substitution.date, Period.number))
        else:
            q = q.order_by(Substitution.date.desc(), Period.number)
        return self._resolve_subs(q)

    def substitutions_for_class(self, class_id: str, on: date) -> list[dict]:
        q = (self._sub_query()
             .where(Substitution.class_id == class_id, Substitution.date == on)
             .order_by(Period.number))
        return self._resolve_subs(q)

    def substitutions_for_teacher(self, teacher_id: str, start: Optional[date] = None,
                                  end: Optional[date] = None) -> list[dict]:
        q = self._sub_query().where(or_(
            Substitution.original_teacher_id == teacher_id,
            Substitution.substitute_teacher_id == teacher_id,
        ))
        if start is not None and end is not None:
            q = q.where(Substitution.date >= start, Substitution.date <= end)
        return self._resolve_subs(q.order_by(Substitution.date, Period.number))

    def add_substitution(self, data: Mapping[str, Any]) -> str:
        row = Substitution(**_columns(Substitution, data))
        self.session.add(row)
        self.session.commit()
        return row.id

    def update_substitution(self, id_: str, data: Mapping[str, Any]) -> None:
        row = self.session.get(Substitution, id_)
        if row is None:
            raise NotFound(LABELS["substitutions"], id_)
        for key, value in _columns(Substitution, data).items():
            setattr(row, key, value)
        self.session.commit()

    def delete_substitution(self, id_: str) -> None:
        row = self.session.get(Substitution, id_)
        if row is None:
            raise NotFound(LABELS["substitutions"], id_)
        self.session.delete(row)
        self.session.commit()
