"""In-memory entity store: ephemeral fallback when no database is configured.

All tables are plain dicts keyed by id; one re-entrant lock serialises every
read-modify-write so the conflict check and the insert form a single unit.
"""
from __future__ import annotations
import logging
import threading
from datetime import date, datetime
from typing import Any, Mapping, Optional

from blueprints.constraints.services import ensure_no_conflict
from errors import DuplicateError, NotFound
from models import REFERENCE_MODELS, Substitution, TimetableEntry, new_id

from .common import (
    LABELS, SORT_KEYS, blank_record, check_axis, check_kind, in_range,
    resolve_entry, resolve_substitution, sort_substitutions, sort_timetable,
)

log = logging.getLogger(__name__)


class MemoryEntityStore:
    def __init__(self):
        self._lock = threading.RLock()
        self._tables: dict[str, dict[str, dict]] = {kind: {} for kind in REFERENCE_MODELS}
        self._entries: dict[str, dict] = {}
        self._subs: dict[str, dict] = {}

    # ---------- helpers ----------
    @staticmethod
    def _fill(model, data: Mapping[str, Any], base: Optional[dict] = None) -> dict:
        row = dict(base) if base is not None else blank_record(model)
        for key, value in data.items():
            if key in row and key not in ("id", "created_at"):
                row[key] = value
        return row

    @staticmethod
    def _insert(table: dict, row: dict) -> str:
        row["id"] = row.get("id") or new_id()
        row["created_at"] = datetime.utcnow()
        table[row["id"]] = row
        return row["id"]

    def _ref(self, kind: str, id_: Optional[str]) -> Optional[dict]:
        return self._tables[kind].get(id_) if id_ else None

    def _check_unique(self, kind: str, row: dict) -> None:
        if kind != "periods":
            return
        for other in self._tables["periods"].values():
            if other["id"] != row.get("id") and other["number"] == row["number"]:
                raise DuplicateError("Unique constraint violation")

    # ---------- reference data ----------
    def list_entities(self, kind: str) -> list[dict]:
        check_kind(kind)
        with self._lock:
            rows = [dict(r) for r in self._tables[kind].values()]
        return sorted(rows, key=SORT_KEYS[kind])

    def get_entity(self, kind: str, id_: str) -> Optional[dict]:
        check_kind(kind)
        with self._lock:
            row = self._tables[kind].get(id_)
            return dict(row) if row else None

    def count_entities(self, kind: str) -> int:
        check_kind(kind)
        with self._lock:
            return len(self._tables[kind])

    def create_entity(self, kind: str, data: Mapping[str, Any]) -> str:
        check_kind(kind)
        with self._lock:
            row = self._fill(REFERENCE_MODELS[kind], data)
            self._check_unique(kind, row)
            return self._insert(self._tables[kind], row)

    def update_entity(self, kind: str, id_: str, data: Mapping[str, Any]) -> None:
        check_kind(kind)
        with self._lock:
            current = self._tables[kind].get(id_)
            if current is None:
                raise NotFound(LABELS[kind], id_)
            row = self._fill(REFERENCE_MODELS[kind], data, base=current)
            self._check_unique(kind, row)
            self._tables[kind][id_] = row

    def delete_entity(self, kind: str, id_: str) -> None:
        check_kind(kind)
        with self._lock:
            if self._tables[kind].pop(id_, None) is None:
                raise NotFound(LABELS[kind], id_)

    # ---------- timetable ----------
    def _resolve_entry(self, entry: dict) -> dict:
        return resolve_entry(
            entry,
            self._ref("classes", entry.get("class_id")),
            self._ref("subjects", entry.get("subject_id")),
            self._ref("teachers", entry.get("teacher_id")),
            self._ref("rooms", entry.get("room_id")),
            self._ref("periods", entry.get("period_id")),
        )

    def get_entry(self, id_: str) -> Optional[dict]:
        with self._lock:
            entry = self._entries.get(id_)
            return dict(entry) if entry else None

    def entries_in_slot(self, day_of_week: int, period_id: str,
                        exclude_id: Optional[str] = None) -> list[dict]:
        with self._lock:
            return [dict(e) for e in self._entries.values()
                    if e["day_of_week"] == day_of_week and e["period_id"] == period_id
                    and e["id"] != exclude_id]

    def timetable_for(self, axis: str, id_: str) -> list[dict]:
        check_axis(axis)
        field = f"{axis}_id"
        with self._lock:
            rows = [self._resolve_entry(e) for e in self._entries.values() if e[field] == id_]
        return sort_timetable(rows)

    def add_entry(self, data: Mapping[str, Any]) -> str:
        with self._lock:
            row = self._fill(TimetableEntry, data)
            ensure_no_conflict(row, self._entries.values())
            return self._insert(self._entries, row)

    def update_entry(self, id_: str, data: Mapping[str, Any]) -> None:
        with self._lock:
            current = self._entries.get(id_)
            if current is None:
                raise NotFound(LABELS["timetable"], id_)
            row = self._fill(TimetableEntry, data, base=current)
            ensure_no_conflict(row, self._entries.values(), exclude_id=id_)
            self._entries[id_] = row

    def delete_entry(self, id_: str) -> None:
        with self._lock:
            if self._entries.pop(id_, None) is None:
                raise NotFound(LABELS["timetable"], id_)

    # ---------- substitutions ----------
    def _resolve_sub(self, sub: dict) -> dict:
        return resolve_substitution(
            sub,
            self._ref("teachers", sub.get("original_teacher_id")),
            self._ref("teachers", sub.get("substitute_teacher_id")),
            self._ref("subjects", sub.get("subject_id")),
            self._ref("classes", sub.get("class_id")),
            self._ref("rooms", sub.get("room_id")),
            self._ref("periods", sub.get("period_id")),
        )

    def _select_subs(self, predicate) -> list[dict]:
        with self._lock:
            return [self._resolve_sub(s) for s in self._subs.values() if predicate(s)]

    def get_substitution(self, id_: str) -> Optional[dict]:
        with self._lock:
            sub = self._subs.get(id_)
            return dict(sub) if sub else None

    def list_substitutions(self, on: Optional[date] = None, start: Optional[date] = None,
                           end: Optional[date] = None) -> list[dict]:
        rows = self._select_subs(lambda s: in_range(s["date"], on, start, end))
        unfiltered = on is None and (start is None or end is None)
        return sort_substitutions(rows, newest_first=unfiltered)

    def substitutions_for_class(self, class_id: str, on: date) -> list[dict]:
        rows = self._select_subs(lambda s: s["class_id"] == class_id and s["date"] == on)
        return sort_substitutions(rows)

    def substitutions_for_teacher(self, teacher_id: str, start: Optional[date] = None,
                                  end: Optional[date] = None) -> list[dict]:
        def hit(s: dict) -> bool:
            mine = teacher_id in (s["original_teacher_id"], s["substitute_teacher_id"])
            return mine and in_range(s["date"], None, start, end)
        return sort_substitutions(self._select_subs(hit))

    def add_substitution(self, data: Mapping[str, Any]) -> str:
        with self._lock:
            return self._insert(self._subs, self._fill(Substitution, data))

    def update_substitution(self, id_: str, data: Mapping[str, Any]) -> None:
        with self._lock:
            current = self._subs.get(id_)
            if current is None:
                raise NotFound(LABELS["substitutions"], id_)
            self._subs[id_] = self._fill(Substitution, data, base=current)

    def delete_substitution(self, id_: str) -> None:
        with self._lock:
            if self._subs.pop(id_, None) is None:
                raise NotFound(LABELS["substitutions"], id_)
