from __future__ import annotations
import logging
from typing import Any

from flask import jsonify, request, url_for
from flask_login import current_user

from blueprints.auth.permissions import is_teacher_only
from blueprints.auth.routes import admin_required, role_groups
from errors import NotFound
from store import get_store
from store.common import LABELS

from . import bp
from .schemas import SCHEMAS

log = logging.getLogger(__name__)

# /api/<kind>[/<id>] для всех справочников
KIND = "<any(classes, teachers, rooms, subjects, periods):kind>"


# ----------------------- Helpers -----------------------
def ok(data: Any, status: int = 200):
    return jsonify(data), status


def created(location: str, data: Any):
    resp = jsonify(data)
    resp.status_code = 201
    resp.headers["Location"] = location
    return resp


def serialize(kind: str, row: dict) -> dict:
    _, out = SCHEMAS[kind]
    return out.model_validate(row).to_json()


def _linked_teacher_only() -> str | None:
    """id привязанного преподавателя, если смотрит преподаватель без админ-прав."""
    if not current_user.is_authenticated:
        return None
    if not is_teacher_only(current_user.groups, role_groups()):
        return None
    return current_user.linked_teacher_id


# ----------------------- CRUD JSON API -----------------------
@bp.get(f"/{KIND}")
def api_list(kind: str):
    rows = get_store().list_entities(kind)
    if kind == "teachers" and request.args.get("view") == "selector":
        linked = _linked_teacher_only()
        if linked:
            rows = [r for r in rows if r["id"] == linked]
    return ok([serialize(kind, r) for r in rows])


@bp.get(f"/{KIND}/<id_>")
def api_get(kind: str, id_: str):
    row = get_store().get_entity(kind, id_)
    if row is None:
        raise NotFound(LABELS[kind], id_)
    return ok(serialize(kind, row))


@bp.post(f"/{KIND}")
@admin_required
def api_create(kind: str):
    schema_in, _ = SCHEMAS[kind]
    parsed = schema_in.model_validate(request.get_json(silent=True) or {})
    new_id = get_store().create_entity(kind, parsed.model_dump())
    log.info("%s created", LABELS[kind], extra={"event": "reference_create", "username": current_user.username})
    return created(url_for("directory.api_get", kind=kind, id_=new_id), {"success": True, "id": new_id})


@bp.put(f"/{KIND}/<id_>")
@admin_required
def api_update(kind: str, id_: str):
    schema_in, _ = SCHEMAS[kind]
    parsed = schema_in.model_validate(request.get_json(silent=True) or {})
    get_store().update_entity(kind, id_, parsed.model_dump())
    return ok({"success": True})


@bp.delete(f"/{KIND}/<id_>")
@admin_required
def api_delete(kind: str, id_: str):
    # висячие ссылки из расписания остаются, в выдаче имена станут null
    get_store().delete_entity(kind, id_)
    log.info("%s deleted", LABELS[kind], extra={"event": "reference_delete", "username": current_user.username})
    return ok({"success": True})
