from __future__ import annotations
from datetime import time

import pytest

from app import create_app
from extensions import db


@pytest.fixture(params=["test", "test-memory"])
def client_app(request):
    app = create_app(request.param)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(client_app):
    return client_app.test_client()


@pytest.fixture()
def ids(client_app):
    store = client_app.extensions["entity_store"]
    return {
        "p1": store.create_entity("periods", {"number": 1, "start_time": time(7, 15), "end_time": time(8, 0)}),
        "p2": store.create_entity("periods", {"number": 2, "start_time": time(8, 10), "end_time": time(8, 55)}),
        "9A": store.create_entity("classes", {"name": "9.A", "grade": 9, "section": "A"}),
        "9B": store.create_entity("classes", {"name": "9.B", "grade": 9, "section": "B"}),
        "T1": store.create_entity("teachers", {"name": "Nagy István", "short_name": "NI"}),
        "T2": store.create_entity("teachers", {"name": "Kiss Katalin", "short_name": "KK"}),
        "T3": store.create_entity("teachers", {"name": "Tóth Péter", "short_name": "TP"}),
    }


def _auth(client, username):
    r = client.post("/api/ldap/auth", json={"username": username, "password": username})
    assert r.status_code == 200, r.get_json()
    return {"Authorization": f"Bearer {r.get_json()['token']}"}


def _sub(ids, date="2025-03-10", period="p1", cls="9A", original="T1", substitute="T2", **kw):
    body = {"date": date, "periodId": ids[period], "classId": ids[cls],
            "originalTeacherId": ids[original],
            "substituteTeacherId": ids[substitute] if substitute else None,
            "reason": "betegség"}
    body.update(kw)
    return body


def test_create_requires_edit_rights(client, ids):
    assert client.post("/api/substitutions", json=_sub(ids)).status_code == 401
    assert client.post("/api/substitutions", json=_sub(ids), headers=_auth(client, "diak")).status_code == 403


def test_create_records_author_and_resolves_names(client, ids):
    h = _auth(client, "irodista")
    r = client.post("/api/substitutions", json=_sub(ids), headers=h)
    assert r.status_code == 201
    sid = r.get_json()["id"]

    rows = client.get("/api/substitutions?date=2025-03-10").get_json()
    assert len(rows) == 1
    row = rows[0]
    assert row["id"] == sid
    assert row["createdBy"] == "irodista"
    assert row["originalTeacherName"] == "Nagy István"
    assert row["substituteTeacherName"] == "Kiss Katalin"
    assert row["className"] == "9.A"
    assert row["periodNumber"] == 1
    assert row["startTime"] == "07:15"
    assert row["cancelled"] is False


def test_missing_substitute_means_cancelled(client, ids):
    h = _auth(client, "tanar")
    sid = client.post("/api/substitutions", json=_sub(ids, substitute=None), headers=h).get_json()["id"]
    row = client.get(f"/api/substitutions/{sid}").get_json()
    assert row["cancelled"] is True
    assert row["substituteTeacherId"] is None


def test_not_conflict_checked(client, ids):
    h = _auth(client, "admin")
    assert client.post("/api/substitutions", json=_sub(ids), headers=h).status_code == 201
    assert client.post("/api/substitutions", json=_sub(ids), headers=h).status_code == 201
    assert len(client.get("/api/substitutions?date=2025-03-10").get_json()) == 2


def test_filters_and_ordering(client, ids):
    h = _auth(client, "admin")
    for date, period in (("2025-03-10", "p2"), ("2025-03-10", "p1"), ("2025-03-11", "p1"), ("2025-03-20", "p1")):
        client.post("/api/substitutions", json=_sub(ids, date=date, period=period), headers=h)

    day = client.get("/api/substitutions?date=2025-03-10").get_json()
    assert [r["periodNumber"] for r in day] == [1, 2]

    rng = client.get("/api/substitutions?startDate=2025-03-10&endDate=2025-03-11").get_json()
    assert [(r["date"], r["periodNumber"]) for r in rng] == [
        ("2025-03-10", 1), ("2025-03-10", 2), ("2025-03-11", 1)]

    # одна граница диапазона игнорируется: весь список, новые сверху
    everything = client.get("/api/substitutions?startDate=2025-03-11").get_json()
    assert [r["date"] for r in everything] == ["2025-03-20", "2025-03-11", "2025-03-10", "2025-03-10"]


def test_by_class_and_teacher(client, ids):
    h = _auth(client, "admin")
    client.post("/api/substitutions", json=_sub(ids, cls="9A", original="T1", substitute="T2"), headers=h)
    client.post("/api/substitutions", json=_sub(ids, cls="9B", original="T3", substitute="T1", period="p2"), headers=h)
    client.post("/api/substitutions", json=_sub(ids, date="2025-04-01", original="T3", substitute="T2"), headers=h)

    rows = client.get(f"/api/substitutions/class/{ids['9A']}/2025-03-10").get_json()
    assert len(rows) == 1

    # T1 — и как отсутствующий, и как замещающий
    rows = client.get(f"/api/substitutions/teacher/{ids['T1']}").get_json()
    assert len(rows) == 2
    rows = client.get(f"/api/substitutions/teacher/{ids['T2']}?startDate=2025-03-01&endDate=2025-03-31").get_json()
    assert len(rows) == 1

    assert client.get(f"/api/substitutions/class/{ids['9A']}/not-a-date").status_code == 400


def test_update_and_delete(client, ids):
    h = _auth(client, "admin")
    sid = client.post("/api/substitutions", json=_sub(ids), headers=h).get_json()["id"]
    r = client.put(f"/api/substitutions/{sid}", json=_sub(ids, substitute="T3", note="csere"), headers=h)
    assert r.status_code == 200
    row = client.get(f"/api/substitutions/{sid}").get_json()
    assert row["substituteTeacherId"] == ids["T3"]
    assert row["createdBy"] == "admin"

    assert client.delete(f"/api/substitutions/{sid}", headers=h).status_code == 200
    assert client.get(f"/api/substitutions/{sid}").status_code == 404
    assert client.delete(f"/api/substitutions/{sid}", headers=h).status_code == 404


def test_bad_query_date(client, ids):
    r = client.get("/api/substitutions?date=yesterday")
    assert r.status_code == 400
