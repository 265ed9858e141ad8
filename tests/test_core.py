from __future__ import annotations
import json
import logging

from app import create_app
from blueprints.core.routes import JSONFormatter


def test_health_ok():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/health")
        assert rv.status_code == 200
        data = rv.get_json()
        assert data["status"] == "ok"
        assert data["store"] == "SqlEntityStore"


def test_health_reports_memory_store():
    app = create_app("test-memory")
    with app.test_client() as c:
        assert c.get("/health").get_json()["store"] == "MemoryEntityStore"


def test_api_404_is_json():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/api/nothing/here")
        assert rv.status_code == 404
        assert "error" in rv.get_json()


def test_method_not_allowed_is_json():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.patch("/api/classes")
        assert rv.status_code == 405
        assert "error" in rv.get_json()


def test_json_formatter_fields():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "request handled", None, None)
    record.event = "http_request"
    record.status = 200
    record.username = "admin"
    payload = json.loads(JSONFormatter().format(record))
    assert payload["msg"] == "request handled"
    assert payload["event"] == "http_request"
    assert payload["status"] == 200
    assert payload["username"] == "admin"
    assert payload["level"] == "INFO"


def test_request_is_logged(caplog):
    app = create_app("test")
    with caplog.at_level(logging.INFO, logger="blueprints.core.routes"):
        with app.test_client() as c:
            c.get("/health")
    hits = [r for r in caplog.records if getattr(r, "event", None) == "http_request"]
    assert hits and hits[-1].path == "/health" and hits[-1].status == 200


def test_unexpected_error_is_500_json():
    app = create_app("test")

    @app.get("/api/boom")
    def boom():
        raise RuntimeError("boom")

    with app.test_client() as c:
        rv = c.get("/api/boom")
        assert rv.status_code == 500
        assert rv.get_json() == {"error": "internal server error"}
