# blueprints/timetable/routes.py
from __future__ import annotations
import logging

from flask import Blueprint, jsonify, request, url_for
from flask_login import current_user, login_required

from blueprints.auth.routes import role_groups
from errors import NotFound
from store import get_store
from store.common import LABELS
from . import services as svc
from .schemas import CheckIn, EntryIn, EntryOut, ResolvedEntryOut

log = logging.getLogger(__name__)

api_bp = Blueprint("timetable_api", __name__)


# ---------- чтение (публично) ----------
@api_bp.get("/timetable/<any(class, teacher, room):axis>/<id_>")
def weekly(axis: str, id_: str):
    rows = get_store().timetable_for(axis, id_)
    return jsonify([ResolvedEntryOut.model_validate(r).to_json() for r in rows])


@api_bp.get("/timetable/entry/<id_>")
def get_entry(id_: str):
    entry = get_store().get_entry(id_)
    if entry is None:
        raise NotFound(LABELS["timetable"], id_)
    return jsonify(EntryOut.model_validate(entry).to_json())


# ---------- изменения ----------
@api_bp.post("/timetable")
@login_required
def create():
    parsed = EntryIn.model_validate(request.get_json(silent=True) or {})
    new_id = svc.create_entry(get_store(), current_user, parsed.model_dump(), role_groups())
    log.info("timetable entry created", extra={"event": "timetable_create", "username": current_user.username})
    resp = jsonify({"success": True, "id": new_id})
    resp.status_code = 201
    resp.headers["Location"] = url_for("timetable_api.get_entry", id_=new_id)
    return resp


@api_bp.put("/timetable/<id_>")
@login_required
def update(id_: str):
    parsed = EntryIn.model_validate(request.get_json(silent=True) or {})
    svc.update_entry(get_store(), current_user, id_, parsed.model_dump(), role_groups())
    return jsonify({"success": True})


@api_bp.delete("/timetable/<id_>")
@login_required
def delete(id_: str):
    svc.delete_entry(get_store(), current_user, id_, role_groups())
    log.info("timetable entry deleted", extra={"event": "timetable_delete", "username": current_user.username})
    return jsonify({"success": True})


@api_bp.post("/timetable/check")
@login_required
def check():
    parsed = CheckIn.model_validate(request.get_json(silent=True) or {})
    candidate = parsed.model_dump(exclude={"exclude_id"})
    reason = svc.dry_run(get_store(), candidate, parsed.exclude_id)
    if reason is None:
        return jsonify({"ok": True})
    # все бизнес-ошибки — 409
    return jsonify({"ok": False, "error": reason.message, "code": reason.code}), 409
