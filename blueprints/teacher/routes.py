# blueprints/teacher/routes.py
from __future__ import annotations
import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from blueprints.auth.permissions import is_teaching_staff
from blueprints.auth.routes import role_groups, teaching_staff_required
from blueprints.auth.schemas import TeacherLinkIn
from blueprints.auth.sessions import get_session_store
from blueprints.directory.schemas import TeacherOut
from store import get_store
from . import services as svc

log = logging.getLogger(__name__)

api_bp = Blueprint("teacher_api", __name__)


def _teacher_json(row: dict) -> dict:
    return TeacherOut.model_validate(row).to_json()


# ---------- API ----------
@api_bp.get("/auth/teacher-link")
@login_required
def get_link():
    store, sessions = get_store(), get_session_store()
    teacher_id = current_user.linked_teacher_id
    teacher = store.get_entity("teachers", teacher_id) if teacher_id else None
    if teacher_id and teacher is None:
        # привязанного преподавателя удалили
        svc.unlink(sessions, current_user.token)

    if teacher is None and is_teaching_staff(current_user.groups, role_groups()):
        teacher_id = svc.link_on_login(store, sessions, current_user.token, current_user.record.user,
                                       current_user.groups, role_groups())
        teacher = store.get_entity("teachers", teacher_id) if teacher_id else None

    if teacher is not None:
        return jsonify({"linked": True, "teacher": _teacher_json(teacher)})
    candidates = svc.filter_candidates(store.list_entities("teachers"))
    return jsonify({"linked": False, "candidates": [_teacher_json(t) for t in candidates]})


@api_bp.put("/auth/teacher-link")
@teaching_staff_required
def put_link():
    payload = TeacherLinkIn.model_validate(request.get_json(silent=True) or {})
    teacher = svc.link(get_store(), get_session_store(), current_user.token, payload.teacher_id)
    log.info("manual teacher link", extra={"event": "teacher_link", "username": current_user.username})
    return jsonify({"success": True, "linked": True, "teacher": _teacher_json(teacher)})


@api_bp.delete("/auth/teacher-link")
@login_required
def delete_link():
    svc.unlink(get_session_store(), current_user.token)
    return jsonify({"success": True, "linked": False})


@api_bp.get("/auth/teacher-link/candidates")
@login_required
def candidates():
    rows = svc.filter_candidates(get_store().list_entities("teachers"), request.args.get("q"))
    return jsonify([_teacher_json(t) for t in rows])
