"""Entity store: one interface, two backends (durable SQL / ephemeral in-memory).

The backend is picked once in `create_app` from ``ENTITY_STORE`` and kept in
``app.extensions["entity_store"]``; request handlers reach it via `get_store()`.
Records cross the interface as plain dicts with snake_case keys.
"""
from __future__ import annotations
import logging
from datetime import date
from typing import Any, Mapping, Optional, Protocol

from flask import Flask, current_app

log = logging.getLogger(__name__)


class EntityStore(Protocol):
    # ---- reference data: classes / teachers / rooms / subjects / periods
    def list_entities(self, kind: str) -> list[dict]: ...
    def get_entity(self, kind: str, id_: str) -> Optional[dict]: ...
    def count_entities(self, kind: str) -> int: ...
    def create_entity(self, kind: str, data: Mapping[str, Any]) -> str: ...
    def update_entity(self, kind: str, id_: str, data: Mapping[str, Any]) -> None: ...
    def delete_entity(self, kind: str, id_: str) -> None: ...

    # ---- weekly timetable
    def get_entry(self, id_: str) -> Optional[dict]: ...
    def entries_in_slot(self, day_of_week: int, period_id: str,
                        exclude_id: Optional[str] = None) -> list[dict]: ...
    def timetable_for(self, axis: str, id_: str) -> list[dict]: ...
    def add_entry(self, data: Mapping[str, Any]) -> str: ...
    def update_entry(self, id_: str, data: Mapping[str, Any]) -> None: ...
    def delete_entry(self, id_: str) -> None: ...

    # ---- date-scoped substitutions
    def get_substitution(self, id_: str) -> Optional[dict]: ...
    def list_substitutions(self, on: Optional[date] = None, start: Optional[date] = None,
                           end: Optional[date] = None) -> list[dict]: ...
    def substitutions_for_class(self, class_id: str, on: date) -> list[dict]: ...
    def substitutions_for_teacher(self, teacher_id: str, start: Optional[date] = None,
                                  end: Optional[date] = None) -> list[dict]: ...
    def add_substitution(self, data: Mapping[str, Any]) -> str: ...
    def update_substitution(self, id_: str, data: Mapping[str, Any]) -> None: ...
    def delete_substitution(self, id_: str) -> None: ...


def create_store(app: Flask) -> EntityStore:
    backend = (app.config.get("ENTITY_STORE") or "sql").lower()
    if backend == "memory":
        from .memory import MemoryEntityStore
        return MemoryEntityStore()
    if backend == "sql":
        from extensions import db
        from .sql import SqlEntityStore
        return SqlEntityStore(db)
    raise ValueError(f"unknown ENTITY_STORE backend: {backend}")


def init_store(app: Flask) -> EntityStore:
    store = create_store(app)
    app.extensions["entity_store"] = store
    log.info("entity store: %s", type(store).__name__)
    return store


def get_store() -> EntityStore:
    return current_app.extensions["entity_store"]
