from __future__ import annotations
import logging
import os
from importlib import import_module
from flask import Flask
from config import config_map
from extensions import db, migrate, login_manager
from sqlalchemy import inspect

from store import init_store
from blueprints.auth.sessions import init_sessions
from blueprints.auth.authenticators import init_authenticator

log = logging.getLogger(__name__)

def _seed_from_config(app):
    if not app.config.get("SEED_DEFAULT_DATA"):
        return
    with app.app_context():
        # таблицы могут ещё не быть созданы (до alembic upgrade)
        if app.config.get("ENTITY_STORE", "sql") == "sql" and not inspect(db.engine).has_table("periods"):
            log.warning("seed skipped: run `flask db upgrade` first")
            return

        from seed import seed_default_data  # локальный импорт, чтобы избежать циклов
        seed_default_data(app.extensions["entity_store"])

def register_blueprints(app: Flask) -> None:
    # Жёстко импортируем модуль с маршрутами core перед взятием bp
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp
    from blueprints.auth.routes import api_bp as auth_api_bp
    from blueprints.teacher.routes import api_bp as teacher_api_bp
    from blueprints.directory import bp as directory_bp
    from blueprints.timetable.routes import api_bp as timetable_api_bp
    from blueprints.substitutions.routes import api_bp as substitutions_api_bp

    # core без префикса → '/health' в корне
    app.register_blueprint(core_bp)
    app.register_blueprint(auth_api_bp, url_prefix="/api")
    app.register_blueprint(teacher_api_bp, url_prefix="/api")
    app.register_blueprint(directory_bp, url_prefix="/api")
    app.register_blueprint(timetable_api_bp, url_prefix="/api")
    app.register_blueprint(substitutions_api_bp, url_prefix="/api")

def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.setdefault("SECRET_KEY", "change-me-in-prod")
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    init_store(app)
    init_sessions(app)
    init_authenticator(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app
