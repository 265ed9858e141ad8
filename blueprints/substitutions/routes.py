# blueprints/substitutions/routes.py
from __future__ import annotations
import datetime as dt

from flask import Blueprint, jsonify, request, url_for
from flask_login import current_user

from blueprints.auth.routes import edit_required
from errors import NotFound, ValidationFailure
from store import get_store
from store.common import LABELS
from . import services as svc
from .schemas import SubstitutionIn, SubstitutionOut, SubstitutionQuery

api_bp = Blueprint("substitutions_api", __name__)


def _dump(rows) -> list[dict]:
    return [SubstitutionOut.model_validate(r).to_json() for r in rows]


def _parse_date(value: str) -> dt.date:
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise ValidationFailure(f"bad date: {value}") from None


# ---------- чтение (публично) ----------
@api_bp.get("/substitutions")
def list_all():
    q = SubstitutionQuery.model_validate(request.args.to_dict())
    return jsonify(_dump(get_store().list_substitutions(q.date, q.start_date, q.end_date)))


@api_bp.get("/substitutions/class/<class_id>/<day>")
def for_class(class_id: str, day: str):
    return jsonify(_dump(get_store().substitutions_for_class(class_id, _parse_date(day))))


@api_bp.get("/substitutions/teacher/<teacher_id>")
def for_teacher(teacher_id: str):
    q = SubstitutionQuery.model_validate(request.args.to_dict())
    return jsonify(_dump(get_store().substitutions_for_teacher(teacher_id, q.start_date, q.end_date)))


@api_bp.get("/substitutions/<id_>")
def get_one(id_: str):
    row = get_store().get_substitution(id_)
    if row is None:
        raise NotFound(LABELS["substitutions"], id_)
    return jsonify(SubstitutionOut.model_validate(row).to_json())


# ---------- изменения ----------
@api_bp.post("/substitutions")
@edit_required
def create():
    parsed = SubstitutionIn.model_validate(request.get_json(silent=True) or {})
    new_id = svc.create_substitution(get_store(), parsed.model_dump(), current_user.username)
    resp = jsonify({"success": True, "id": new_id})
    resp.status_code = 201
    resp.headers["Location"] = url_for("substitutions_api.get_one", id_=new_id)
    return resp


@api_bp.put("/substitutions/<id_>")
@edit_required
def update(id_: str):
    parsed = SubstitutionIn.model_validate(request.get_json(silent=True) or {})
    svc.update_substitution(get_store(), id_, parsed.model_dump())
    return jsonify({"success": True})


@api_bp.delete("/substitutions/<id_>")
@edit_required
def delete(id_: str):
    get_store().delete_substitution(id_)
    return jsonify({"success": True})
