from __future__ import annotations
from datetime import date, time

import pytest

from app import create_app
from errors import DuplicateError, NotFound
from extensions import db
from seed import seed_default_data


@pytest.fixture(params=["test", "test-memory"])
def store(request):
    app = create_app(request.param)
    with app.app_context():
        db.create_all()
        yield app.extensions["entity_store"]
        db.session.remove()
        db.drop_all()


def test_seed_is_idempotent(store):
    assert seed_default_data(store) == 8 + 14 + 10 + 12 + 12
    assert seed_default_data(store) == 0
    assert store.count_entities("periods") == 8
    assert store.count_entities("teachers") == 12
    periods = store.list_entities("periods")
    assert periods[0]["start_time"] == time(7, 15)
    assert periods[-1]["end_time"] == time(14, 25)


def test_rooms_ordered_by_building_then_name(store):
    seed_default_data(store)
    rooms = store.list_entities("rooms")
    keys = [(r["building"], r["name"]) for r in rooms]
    assert keys == sorted(keys)


def test_unknown_ids(store):
    with pytest.raises(NotFound):
        store.update_entity("classes", "missing", {"name": "x"})
    with pytest.raises(NotFound):
        store.delete_entity("teachers", "missing")
    with pytest.raises(NotFound):
        store.update_entry("missing", {})
    with pytest.raises(NotFound):
        store.delete_substitution("missing")
    assert store.get_entity("rooms", "missing") is None
    assert store.get_entry("missing") is None


def test_unknown_kind(store):
    with pytest.raises(ValueError):
        store.list_entities("users")
    with pytest.raises(ValueError):
        store.timetable_for("building", "x")


def test_duplicate_period_number(store):
    store.create_entity("periods", {"number": 1, "start_time": time(8, 0), "end_time": time(8, 45)})
    with pytest.raises(DuplicateError):
        store.create_entity("periods", {"number": 1, "start_time": time(9, 0), "end_time": time(9, 45)})
    assert store.count_entities("periods") == 1


def test_substitution_defaults(store):
    sid = store.add_substitution({"date": date(2025, 3, 10), "period_id": "p", "class_id": "c",
                                  "substitute_teacher_id": "t"})
    sub = store.get_substitution(sid)
    assert sub["cancelled"] is False
    assert sub["created_at"] is not None
    rows = store.list_substitutions(on=date(2025, 3, 10))
    assert rows[0]["class_name"] is None  # висячие ссылки
