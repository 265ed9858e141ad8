from __future__ import annotations
import itertools

import pytest

from blueprints.auth import permissions as perm

ALL_GROUPS = ["vezetoseg", "rendszergaza", "tanarok", "irodistak", "tanulo", "other"]


def test_admin_groups():
    assert perm.is_admin(["vezetoseg"])
    assert perm.is_admin(["RendszerGaza"])  # регистр не важен
    assert perm.is_admin(["leadership"])
    assert not perm.is_admin(["tanarok"])
    assert not perm.is_admin(["irodistak"])
    assert not perm.is_admin([])


def test_can_edit_general():
    for g in ("vezetoseg", "rendszergaza", "tanarok", "irodistak"):
        assert perm.can_edit_general([g])
    assert not perm.can_edit_general(["tanulo"])
    assert not perm.can_edit_general(None)


def test_teacher_only():
    assert perm.is_teacher_only(["tanarok"])
    assert not perm.is_teacher_only(["tanarok", "vezetoseg"])
    assert not perm.is_teacher_only(["irodistak"])


@pytest.mark.parametrize("n", range(len(ALL_GROUPS) + 1))
def test_admin_implies_edit(n):
    for combo in itertools.combinations(ALL_GROUPS, n):
        if perm.is_admin(combo):
            assert perm.can_edit_general(combo)


def test_can_edit_lesson_rules():
    lesson = {"teacher_id": "t1"}
    other = {"teacher_id": "t2"}
    # админ и канцелярия — любой урок
    assert perm.can_edit_lesson(["rendszergaza"], other, "t1")
    assert perm.can_edit_lesson(["irodistak"], other, "t1")
    # привязанный преподаватель — только свой
    assert perm.can_edit_lesson(["tanarok"], lesson, "t1")
    assert not perm.can_edit_lesson(["tanarok"], other, "t1")
    # без привязки — общее право
    assert perm.can_edit_lesson(["tanarok"], other, None)
    # ученик — никогда
    assert not perm.can_edit_lesson(["tanulo"], lesson, "t1")


def test_custom_role_groups():
    mapping = {"leadership": ["boss"], "system-admin": [], "teaching-staff": ["staff"], "office-staff": []}
    assert perm.is_admin(["BOSS"], mapping)
    assert not perm.is_admin(["vezetoseg"], mapping)
    assert perm.is_teacher_only(["staff"], mapping)


def test_capabilities_json():
    caps = perm.capabilities(["tanarok"])
    assert caps.to_json() == {"isAdmin": False, "canEditGeneral": True, "isTeacherOnly": True}
