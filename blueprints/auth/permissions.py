# blueprints/auth/permissions.py
"""Capabilities derived from a directory group set.

Pure predicates: no request, no store. Group names are compared
case-insensitively and mapped onto canonical roles through ``ROLE_GROUPS``.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from config import DEFAULT_ROLE_GROUPS

LEADERSHIP = "leadership"
SYSTEM_ADMIN = "system-admin"
TEACHING_STAFF = "teaching-staff"
OFFICE_STAFF = "office-staff"

ADMIN_ROLES = frozenset({LEADERSHIP, SYSTEM_ADMIN})
EDIT_ROLES = ADMIN_ROLES | {TEACHING_STAFF, OFFICE_STAFF}

RoleGroups = Mapping[str, Iterable[str]]


def roles_of(groups: Iterable[str] | None, role_groups: Optional[RoleGroups] = None) -> frozenset[str]:
    mapping = role_groups or DEFAULT_ROLE_GROUPS
    names = {str(g).strip().lower() for g in (groups or ())}
    return frozenset(
        role for role, aliases in mapping.items()
        if names & {a.lower() for a in aliases}
    )


def is_admin(groups, role_groups: Optional[RoleGroups] = None) -> bool:
    return bool(roles_of(groups, role_groups) & ADMIN_ROLES)


def can_edit_general(groups, role_groups: Optional[RoleGroups] = None) -> bool:
    return bool(roles_of(groups, role_groups) & EDIT_ROLES)


def is_teaching_staff(groups, role_groups: Optional[RoleGroups] = None) -> bool:
    return TEACHING_STAFF in roles_of(groups, role_groups)


def is_office_staff(groups, role_groups: Optional[RoleGroups] = None) -> bool:
    return OFFICE_STAFF in roles_of(groups, role_groups)


def is_teacher_only(groups, role_groups: Optional[RoleGroups] = None) -> bool:
    return is_teaching_staff(groups, role_groups) and not is_admin(groups, role_groups)


def can_edit_lesson(groups, lesson: Mapping[str, Any], linked_teacher_id: Optional[str] = None,
                    role_groups: Optional[RoleGroups] = None) -> bool:
    """Может ли пользователь менять конкретный урок.

    Админ и канцелярия — любой урок. Привязанный преподаватель — только свои.
    Остальные — по общему праву редактирования.
    """
    if is_admin(groups, role_groups) or is_office_staff(groups, role_groups):
        return True
    if is_teacher_only(groups, role_groups) and linked_teacher_id:
        return lesson.get("teacher_id") == linked_teacher_id
    return can_edit_general(groups, role_groups)


@dataclass(frozen=True)
class Capabilities:
    is_admin: bool
    can_edit_general: bool
    is_teacher_only: bool

    def to_json(self) -> dict:
        return {
            "isAdmin": self.is_admin,
            "canEditGeneral": self.can_edit_general,
            "isTeacherOnly": self.is_teacher_only,
        }


def capabilities(groups, role_groups: Optional[RoleGroups] = None) -> Capabilities:
    return Capabilities(
        is_admin=is_admin(groups, role_groups),
        can_edit_general=can_edit_general(groups, role_groups),
        is_teacher_only=is_teacher_only(groups, role_groups),
    )
