# blueprints/auth/sessions.py
"""Bearer-token sessions and the login throttle.

One `SessionStore` per app (``app.extensions["session_store"]``). Lookups fail
closed: a missing, expired or mismatched token all read as "no session"; the
reason is logged at debug level only.
"""
from __future__ import annotations
import logging
import secrets
import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from flask import Flask, current_app

log = logging.getLogger(__name__)

DEFAULT_LIFETIME_DAYS = 180


@dataclass
class SessionRecord:
    token: str
    username: str
    user: dict
    groups: list[str]
    expires_at: datetime
    created_at: datetime
    linked_teacher_id: Optional[str] = None

    def to_json(self) -> dict:
        return {
            "username": self.username,
            "user": self.user,
            "groups": list(self.groups),
            "linkedTeacherId": self.linked_teacher_id,
            "expiresAt": self.expires_at.isoformat(timespec="seconds") + "Z",
        }


class SessionStore:
    def __init__(self, lifetime: timedelta = timedelta(days=DEFAULT_LIFETIME_DAYS),
                 clock: Callable[[], datetime] = datetime.utcnow):
        self.lifetime = lifetime
        self._clock = clock
        self._lock = threading.Lock()
        self._records: dict[str, SessionRecord] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, token: str) -> bool:
        with self._lock:
            return token in self._records

    def _purge_locked(self, now: datetime) -> int:
        expired = [t for t, r in self._records.items() if r.expires_at <= now]
        for t in expired:
            del self._records[t]
        if expired:
            log.debug("purged %d expired session(s)", len(expired))
        return len(expired)

    def create(self, username: str, user: dict, groups: Iterable[str]) -> str:
        now = self._clock()
        token = secrets.token_hex(32)
        with self._lock:
            self._purge_locked(now)
            self._records[token] = SessionRecord(
                token=token,
                username=username,
                user=dict(user or {}),
                groups=list(groups or ()),
                created_at=now,
                expires_at=now + self.lifetime,
            )
        return token

    def _live_locked(self, token: Optional[str]) -> Optional[SessionRecord]:
        if not token:
            return None
        record = self._records.get(token)
        if record is None:
            log.debug("session lookup: unknown token")
            return None
        if record.expires_at <= self._clock():
            del self._records[token]
            log.debug("session lookup: expired token for %s, purged", record.username)
            return None
        return record

    def lookup(self, token: Optional[str]) -> Optional[SessionRecord]:
        """Копия живой записи или None."""
        with self._lock:
            record = self._live_locked(token)
            return replace(record, user=dict(record.user), groups=list(record.groups)) if record else None

    def validate(self, token: Optional[str], username: Optional[str]) -> dict:
        with self._lock:
            record = self._live_locked(token)
            if record is None:
                return {"valid": False}
            if record.username != username:
                log.debug("session validate: username mismatch for token of %s", record.username)
                return {"valid": False}
            return {
                "valid": True,
                "user": dict(record.user),
                "groups": list(record.groups),
                "linkedTeacherId": record.linked_teacher_id,
            }

    def set_linked_teacher(self, token: str, teacher_id: Optional[str]) -> bool:
        with self._lock:
            record = self._live_locked(token)
            if record is None:
                return False
            record.linked_teacher_id = teacher_id
            return True

    def revoke(self, token: Optional[str]) -> bool:
        with self._lock:
            return self._records.pop(token, None) is not None if token else False


def init_sessions(app: Flask) -> SessionStore:
    days = app.config.get("SESSION_LIFETIME_DAYS", DEFAULT_LIFETIME_DAYS)
    store = SessionStore(lifetime=timedelta(days=days))
    app.extensions["session_store"] = store
    app.extensions["login_throttle"] = LoginThrottle()
    return store


def get_session_store() -> SessionStore:
    return current_app.extensions["session_store"]


# ---------- rate limit ----------
class LoginThrottle:
    """Скользящее окно попыток входа по ключу ip|username.

    Лимиты передаются при каждом вызове (читаются из app.config в момент запроса).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._attempts: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._attempts)

    def _sweep_locked(self, cutoff: float) -> None:
        stale = [k for k, b in self._attempts.items() if not b or b[-1] < cutoff]
        for k in stale:
            del self._attempts[k]

    def hit(self, key: str, max_attempts: int = 5, window: float = 300) -> bool:
        now = self._clock()
        cutoff = now - window
        with self._lock:
            # ключи с истёкшим окном не храним
            self._sweep_locked(cutoff)
            bucket = [t for t in self._attempts.get(key, ()) if t >= cutoff]
            if len(bucket) >= max_attempts:
                self._attempts[key] = bucket
                return False
            bucket.append(now)
            self._attempts[key] = bucket
            return True

    def reset(self, key: str) -> None:
        with self._lock:
            self._attempts.pop(key, None)


def get_login_throttle() -> LoginThrottle:
    return current_app.extensions["login_throttle"]
