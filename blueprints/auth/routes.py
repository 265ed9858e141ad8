# blueprints/auth/routes.py
from __future__ import annotations
import logging
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, current_app, g, jsonify, request
from flask_login import UserMixin, current_user, login_required

from errors import AuthenticationFailure, AuthorizationFailure, TooManyAttempts
from extensions import login_manager
from store import get_store
from blueprints.teacher.services import link_on_login

from . import permissions as perm
from .authenticators import get_authenticator
from .schemas import LoginIn, ValidateIn
from .sessions import SessionRecord, get_login_throttle, get_session_store

log = logging.getLogger(__name__)

api_bp = Blueprint("auth_api", __name__)

DEFAULT_RL_MAX = 5
DEFAULT_RL_WIN = 300  # 5 минут


def role_groups():
    return current_app.config.get("ROLE_GROUPS")


# ---- пользователь запроса = живая запись SessionStore
class SessionUser(UserMixin):
    def __init__(self, record: SessionRecord):
        self.record = record

    def get_id(self) -> str:
        return self.record.username

    @property
    def token(self) -> str:
        return self.record.token

    @property
    def username(self) -> str:
        return self.record.username

    @property
    def display_name(self) -> str:
        return self.record.user.get("displayName") or self.record.username

    @property
    def groups(self) -> list[str]:
        return self.record.groups

    @property
    def linked_teacher_id(self) -> Optional[str]:
        return self.record.linked_teacher_id

    def capabilities(self) -> perm.Capabilities:
        return perm.capabilities(self.groups, role_groups())


def bearer_token(req) -> Optional[str]:
    header = req.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


@api_bp.before_app_request
def _forget_cached_user():
    # контекст приложения может быть общим для нескольких запросов
    g.pop("_login_user", None)


@login_manager.request_loader
def load_user_from_request(req) -> Optional[SessionUser]:
    record = get_session_store().lookup(bearer_token(req))
    return SessionUser(record) if record else None


@login_manager.unauthorized_handler
def _unauth():
    return jsonify(AuthenticationFailure("unauthorized").to_dict()), 401


# ---------- декораторы ролей ----------
def edit_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        if not perm.can_edit_general(current_user.groups, role_groups()):
            raise AuthorizationFailure("editing requires a staff account")
        return fn(*args, **kwargs)
    return wrapper


def admin_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        if not perm.is_admin(current_user.groups, role_groups()):
            raise AuthorizationFailure("administrator rights required")
        return fn(*args, **kwargs)
    return wrapper


def teaching_staff_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        if not perm.is_teaching_staff(current_user.groups, role_groups()):
            raise AuthorizationFailure("only teaching staff can link a teacher record")
        return fn(*args, **kwargs)
    return wrapper


# ---------- rate limit ----------
def _rl_key(username: str) -> str:
    ip = request.headers.get("X-Forwarded-For", request.remote_addr or "0.0.0.0").split(",")[0].strip()
    return f"{ip}|{(username or '').lower()}"


def _rl_check_and_hit(username: str) -> bool:
    return get_login_throttle().hit(
        _rl_key(username),
        max_attempts=current_app.config.get("AUTH_RL_MAX", DEFAULT_RL_MAX),
        window=current_app.config.get("AUTH_RL_WINDOW", DEFAULT_RL_WIN),
    )


# ---------- API ----------
@api_bp.post("/ldap/auth")
def ldap_auth():
    creds = LoginIn.model_validate(request.get_json(silent=True) or {})
    username = creds.username.strip()

    if not _rl_check_and_hit(username):
        log.warning("login throttled", extra={"event": "login_throttled", "username": username})
        raise TooManyAttempts("too many login attempts, try again later")

    result = get_authenticator().authenticate(username, creds.password)
    if not result.success:
        log.info("login failed: %s", result.error, extra={"event": "login_failed", "username": username})
        raise AuthenticationFailure(result.error or "authentication failed")

    get_login_throttle().reset(_rl_key(username))
    sessions = get_session_store()
    token = sessions.create(username, result.user or {}, result.groups)
    linked = link_on_login(get_store(), sessions, token, result.user or {}, result.groups, role_groups())
    log.info("login ok", extra={"event": "login", "username": username})

    return jsonify({
        "success": True,
        "token": token,
        "user": result.user,
        "groups": result.groups,
        "capabilities": perm.capabilities(result.groups, role_groups()).to_json(),
        "linkedTeacherId": linked,
    })


@api_bp.post("/auth/validate")
def validate():
    payload = ValidateIn.model_validate(request.get_json(silent=True) or {})
    out = get_session_store().validate(payload.token, payload.username)
    if out["valid"]:
        out["capabilities"] = perm.capabilities(out["groups"], role_groups()).to_json()
    return jsonify(out)


@api_bp.post("/auth/logout")
@login_required
def logout():
    get_session_store().revoke(current_user.token)
    log.info("logout", extra={"event": "logout", "username": current_user.username})
    return jsonify({"success": True})


@api_bp.get("/auth/me")
@login_required
def me():
    out = current_user.record.to_json()
    out["capabilities"] = current_user.capabilities().to_json()
    return jsonify(out)
