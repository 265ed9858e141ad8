from __future__ import annotations
import os
from pathlib import Path

# канонические роли -> имена групп в каталоге (сравнение без учёта регистра)
DEFAULT_ROLE_GROUPS = {
    "leadership": ["leadership", "vezetoseg"],
    "system-admin": ["system-admin", "rendszergaza"],
    "teaching-staff": ["teaching-staff", "tanarok"],
    "office-staff": ["office-staff", "irodistak"],
}

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'timetable.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # "sql" — durable, "memory" — эфемерное хранилище без БД
    ENTITY_STORE = os.getenv("ENTITY_STORE", "sql")
    SEED_DEFAULT_DATA = True

    SESSION_LIFETIME_DAYS = 180
    AUTH_RL_MAX = 5
    AUTH_RL_WINDOW = 300  # 5 минут

    ROLE_GROUPS = DEFAULT_ROLE_GROUPS

    # "static" — встроенные тестовые учётки, "ldap" — реальный каталог
    DIRECTORY_BACKEND = os.getenv("DIRECTORY_BACKEND", "static")
    LDAP_SERVER = os.getenv("LDAP_SERVER", "127.0.0.1")
    LDAP_PORT = int(os.getenv("LDAP_PORT", "636"))
    LDAP_USE_SSL = os.getenv("LDAP_USE_SSL", "1") == "1"
    LDAP_DOMAIN = os.getenv("LDAP_DOMAIN", "suli.local")
    LDAP_SEARCH_BASE = os.getenv("LDAP_SEARCH_BASE", "dc=suli,dc=local")
    LDAP_TIMEOUT = 10
    LDAP_VERIFY_CERT = os.getenv("LDAP_VERIFY_CERT", "0") == "1"
    LDAP_CA_CERTS_FILE = os.getenv("LDAP_CA_CERTS_FILE") or None

    STATIC_DIRECTORY_USERS = {
        "admin":    {"password": "admin",    "displayName": "Rendszergazda",  "groups": ["rendszergaza"]},
        "igazgato": {"password": "igazgato", "displayName": "Igazgató",       "groups": ["vezetoseg"]},
        "tanar":    {"password": "tanar",    "displayName": "Teszt Tanár",    "groups": ["tanarok"]},
        "irodista": {"password": "irodista", "displayName": "Teszt Irodista", "groups": ["irodistak"]},
        "diak":     {"password": "diak",     "displayName": "Teszt Diák",     "groups": ["tanulo"]},
    }

class DevConfig(BaseConfig):
    DEBUG = True

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False}}
    ENTITY_STORE = "sql"
    SEED_DEFAULT_DATA = False
    DIRECTORY_BACKEND = "static"

class TestMemoryConfig(TestConfig):
    ENTITY_STORE = "memory"

class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_DEFAULT_DATA = False
    DIRECTORY_BACKEND = os.getenv("DIRECTORY_BACKEND", "ldap")
    STATIC_DIRECTORY_USERS = {}

config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "test-memory": TestMemoryConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
