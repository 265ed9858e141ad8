# blueprints/timetable/services.py
"""Timetable writes gated per lesson.

A teacher-only user linked to a teacher record may touch only lessons taught
by that teacher; on update both the stored lesson and its replacement must
pass, so a lesson can be neither taken over nor handed away.
"""
from __future__ import annotations
import logging
from typing import Any, Mapping, Optional

from blueprints.auth.permissions import can_edit_lesson
from blueprints.constraints.services import ConflictReason, check_conflict
from errors import AuthorizationFailure, NotFound
from store import EntityStore
from store.common import LABELS

log = logging.getLogger(__name__)


def ensure_can_edit(user, lesson: Mapping[str, Any], role_groups=None) -> None:
    if not can_edit_lesson(user.groups, lesson, user.linked_teacher_id, role_groups):
        log.info("lesson edit denied", extra={"event": "lesson_denied", "username": user.username})
        raise AuthorizationFailure("you may only edit your own lessons")


def _existing(store: EntityStore, id_: str) -> dict:
    entry = store.get_entry(id_)
    if entry is None:
        raise NotFound(LABELS["timetable"], id_)
    return entry


def create_entry(store: EntityStore, user, data: Mapping[str, Any], role_groups=None) -> str:
    ensure_can_edit(user, data, role_groups)
    return store.add_entry(data)


def update_entry(store: EntityStore, user, id_: str, data: Mapping[str, Any], role_groups=None) -> None:
    current = _existing(store, id_)
    ensure_can_edit(user, current, role_groups)
    ensure_can_edit(user, {**current, **data}, role_groups)
    store.update_entry(id_, data)


def delete_entry(store: EntityStore, user, id_: str, role_groups=None) -> None:
    ensure_can_edit(user, _existing(store, id_), role_groups)
    store.delete_entry(id_)


def dry_run(store: EntityStore, candidate: Mapping[str, Any],
            exclude_id: Optional[str] = None) -> Optional[ConflictReason]:
    existing = store.entries_in_slot(candidate["day_of_week"], candidate["period_id"], exclude_id)
    return check_conflict(candidate, existing, exclude_id)
