# blueprints/constraints/services.py
from __future__ import annotations
import logging
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from errors import ConflictError

log = logging.getLogger(__name__)


class ConflictReason(Enum):
    CLASS_BUSY = "class already scheduled"
    TEACHER_BUSY = "teacher already scheduled"
    ROOM_BUSY = "room already booked"

    @property
    def code(self) -> str:
        return self.name

    @property
    def message(self) -> str:
        return self.value


# порядок проверок фиксирован: класс -> преподаватель -> аудитория
_CHECKS = (
    ("class_id", ConflictReason.CLASS_BUSY),
    ("teacher_id", ConflictReason.TEACHER_BUSY),
    ("room_id", ConflictReason.ROOM_BUSY),
)


def _same_slot(entry: Mapping[str, Any], candidate: Mapping[str, Any]) -> bool:
    return (entry.get("day_of_week") == candidate.get("day_of_week")
            and entry.get("period_id") == candidate.get("period_id"))


def check_conflict(candidate: Mapping[str, Any],
                   existing: Iterable[Mapping[str, Any]],
                   exclude_id: Optional[str] = None) -> Optional[ConflictReason]:
    """Первый найденный конфликт для записи в её слоте (day_of_week, period_id) или None.

    `existing` может содержать записи из других слотов — они отбрасываются.
    `exclude_id` исключает саму запись при обновлении на месте.
    """
    in_slot = [e for e in existing
               if _same_slot(e, candidate) and (exclude_id is None or e.get("id") != exclude_id)]
    for field, reason in _CHECKS:
        value = candidate.get(field)
        if any(e.get(field) == value for e in in_slot):
            return reason
    return None


def ensure_no_conflict(candidate: Mapping[str, Any],
                       existing: Iterable[Mapping[str, Any]],
                       exclude_id: Optional[str] = None) -> None:
    reason = check_conflict(candidate, existing, exclude_id)
    if reason is not None:
        log.info("timetable conflict: %s (day=%s period=%s)",
                 reason.code, candidate.get("day_of_week"), candidate.get("period_id"))
        raise ConflictError(reason.message, code=reason.code)
