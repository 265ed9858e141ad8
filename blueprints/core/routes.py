from __future__ import annotations
import json, logging
from datetime import datetime

from flask import current_app, g, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers.response import Response

from errors import AppError, ValidationFailure

from . import bp                 # используем bp из __init__.py

log = logging.getLogger(__name__)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("event","path","method","status","duration_ms","username"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _setup_structured_logging(app):
    # один JSON-хендлер на корневом логгере: туда же приходят логгеры модулей
    logger = logging.getLogger()
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in logger.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if app.debug else logging.INFO)


def _pydantic_errors_safe(ve: ValidationError):
    errs = ve.errors(include_url=False)
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        if "input" in e:
            e["input"] = str(e["input"])
    return errs


def _error_response(err: AppError):
    return jsonify(err.to_dict()), err.status_code


@bp.before_app_request
def _start_timer():
    g._req_start = datetime.utcnow()


@bp.after_app_request
def _log_request(response: Response):
    try:
        duration_ms = int((datetime.utcnow() - g._req_start).total_seconds() * 1000)
    except AttributeError:
        duration_ms = None
    extra = {
        "event":"http_request",
        "path":request.path,
        "method":request.method,
        "status":response.status_code,
        "duration_ms":duration_ms,
    }
    log.info("request handled", extra=extra)
    return response


# ---------- ошибки: всё в JSON {"error": ...} ----------
@bp.app_errorhandler(AppError)
def _handle_app_error(err: AppError):
    return _error_response(err)


@bp.app_errorhandler(ValidationError)
def _handle_validation(ve: ValidationError):
    first = ve.errors()[0] if ve.errors() else {}
    loc = ".".join(str(p) for p in first.get("loc", ()))
    msg = f"{loc}: {first.get('msg')}" if loc else (first.get("msg") or "invalid request")
    return _error_response(ValidationFailure(msg, details=_pydantic_errors_safe(ve)))


@bp.app_errorhandler(HTTPException)
def _handle_http(e: HTTPException):
    if not request.path.startswith("/api/"):
        return e
    return jsonify({"error": e.description or e.name}), e.code


@bp.app_errorhandler(Exception)
def _handle_unexpected(e: Exception):
    log.exception("unhandled error on %s %s", request.method, request.path)
    return jsonify({"error": "internal server error"}), 500


@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)


@bp.get("/health")
def health():
    return jsonify({
        "status":"ok",
        "ts": datetime.utcnow().isoformat(timespec="seconds")+"Z",
        "store": type(current_app.extensions["entity_store"]).__name__,
    })
