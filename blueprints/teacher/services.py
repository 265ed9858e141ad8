# blueprints/teacher/services.py
"""Teacher identity linking: which Teacher row is the logged-in directory user."""
from __future__ import annotations
import logging
from typing import Iterable, Mapping, Optional

from errors import NotFound
from blueprints.auth.permissions import is_teaching_staff
from blueprints.auth.sessions import SessionStore
from store import EntityStore

log = logging.getLogger(__name__)


def _norm(value: Optional[str]) -> str:
    return (value or "").strip().casefold()


def resolve_link(username: Optional[str], display_name: Optional[str],
                 teachers: Iterable[Mapping]) -> Optional[str]:
    """id преподавателя для пользователя каталога или None.

    1) ldap_username == username (без учёта регистра) — авторитетно;
    2) иначе name == display_name, но только если совпадение единственное.
    Порядок `teachers` на результат не влияет, пока совпадение однозначно.
    """
    teachers = list(teachers)
    login = _norm(username)
    if login:
        by_login = sorted(t["id"] for t in teachers if _norm(t.get("ldap_username")) == login)
        if len(by_login) == 1:
            return by_login[0]
        if by_login:
            log.warning("ldap username %s matches %d teachers, skipping", username, len(by_login))
    name = _norm(display_name)
    if name:
        by_name = [t["id"] for t in teachers if _norm(t.get("name")) == name]
        if len(by_name) == 1:
            return by_name[0]
        if by_name:
            log.info("display name %r is ambiguous (%d teachers)", display_name, len(by_name))
    return None


def filter_candidates(teachers: Iterable[Mapping], q: Optional[str] = None) -> list[dict]:
    """Подстрока по имени, без учёта регистра; пустой q — весь список."""
    needle = _norm(q)
    return [dict(t) for t in teachers if not needle or needle in _norm(t.get("name"))]


def link_on_login(store: EntityStore, sessions: SessionStore, token: str, user: Mapping,
                  groups, role_groups=None) -> Optional[str]:
    """Автопривязка сразу после входа (только для teaching-staff без привязки)."""
    if not is_teaching_staff(groups, role_groups):
        return None
    record = sessions.lookup(token)
    if record is None:
        return None
    if record.linked_teacher_id:
        return record.linked_teacher_id
    teacher_id = resolve_link(user.get("username") or record.username, user.get("displayName"),
                              store.list_entities("teachers"))
    if teacher_id:
        sessions.set_linked_teacher(token, teacher_id)
        log.info("linked %s to teacher %s", record.username, teacher_id)
    return teacher_id


def link(store: EntityStore, sessions: SessionStore, token: str, teacher_id: str) -> dict:
    teacher = store.get_entity("teachers", teacher_id)
    if teacher is None:
        raise NotFound("teacher", teacher_id)
    sessions.set_linked_teacher(token, teacher_id)
    return teacher


def unlink(sessions: SessionStore, token: str) -> None:
    sessions.set_linked_teacher(token, None)
