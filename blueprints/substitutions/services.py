# blueprints/substitutions/services.py
"""Date-scoped overrides of the weekly timetable.

Not conflict checked: a substitution may overlap the base timetable and
other substitutions.
"""
from __future__ import annotations
import logging
from typing import Any, Mapping

from store import EntityStore

log = logging.getLogger(__name__)


def create_substitution(store: EntityStore, data: Mapping[str, Any], created_by: str) -> str:
    new_id = store.add_substitution({**data, "created_by": created_by})
    log.info("substitution %s created", new_id, extra={"event": "substitution_create", "username": created_by})
    return new_id


def update_substitution(store: EntityStore, id_: str, data: Mapping[str, Any]) -> None:
    # автор записи не меняется
    store.update_substitution(id_, {k: v for k, v in data.items() if k != "created_by"})
