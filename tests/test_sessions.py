from __future__ import annotations
from datetime import datetime, timedelta

from blueprints.auth.sessions import LoginThrottle, SessionStore

PROFILE = {"username": "tanar", "displayName": "Teszt Tanár"}


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kw):
        self.now += timedelta(**kw)


def _store():
    clock = FakeClock(datetime(2025, 1, 1, 8, 0))
    return SessionStore(lifetime=timedelta(days=180), clock=clock), clock


def test_create_and_validate():
    store, _ = _store()
    token = store.create("tanar", PROFILE, ["tanarok"])
    assert len(token) == 64
    out = store.validate(token, "tanar")
    assert out["valid"] is True
    assert out["groups"] == ["tanarok"]
    assert out["user"]["displayName"] == "Teszt Tanár"


def test_tokens_are_unique():
    store, _ = _store()
    tokens = {store.create("tanar", PROFILE, []) for _ in range(50)}
    assert len(tokens) == 50


def test_validate_fails_closed():
    store, _ = _store()
    token = store.create("tanar", PROFILE, ["tanarok"])
    assert store.validate(token, "Tanar") == {"valid": False}
    assert store.validate("nope", "tanar") == {"valid": False}
    assert store.validate(None, "tanar") == {"valid": False}
    assert store.validate(token, None) == {"valid": False}


def test_expired_token_is_invalid_and_purged():
    store, clock = _store()
    token = store.create("tanar", PROFILE, ["tanarok"])
    clock.advance(days=179)
    assert store.validate(token, "tanar")["valid"] is True
    clock.advance(days=2)  # 181 день
    assert store.validate(token, "tanar") == {"valid": False}
    assert token not in store


def test_no_sliding_expiration():
    store, clock = _store()
    token = store.create("tanar", PROFILE, [])
    for _ in range(10):
        clock.advance(days=17)
        store.validate(token, "tanar")
    clock.advance(days=11)  # 181
    assert store.lookup(token) is None


def test_create_purges_expired():
    store, clock = _store()
    old = store.create("a", {}, [])
    clock.advance(days=200)
    store.create("b", {}, [])
    assert old not in store
    assert len(store) == 1


def test_set_linked_teacher_idempotent():
    store, _ = _store()
    token = store.create("tanar", PROFILE, ["tanarok"])
    assert store.set_linked_teacher(token, "t1")
    assert store.set_linked_teacher(token, "t1")
    assert store.lookup(token).linked_teacher_id == "t1"
    assert store.validate(token, "tanar")["linkedTeacherId"] == "t1"
    assert not store.set_linked_teacher("missing", "t1")


def test_lookup_returns_copy():
    store, _ = _store()
    token = store.create("tanar", PROFILE, ["tanarok"])
    rec = store.lookup(token)
    rec.groups.append("vezetoseg")
    rec.linked_teacher_id = "hacked"
    fresh = store.lookup(token)
    assert fresh.groups == ["tanarok"]
    assert fresh.linked_teacher_id is None


def test_revoke():
    store, _ = _store()
    token = store.create("tanar", PROFILE, [])
    assert store.revoke(token)
    assert not store.revoke(token)
    assert store.validate(token, "tanar") == {"valid": False}


def test_throttle_window():
    now = [0.0]
    throttle = LoginThrottle(clock=lambda: now[0])
    for _ in range(3):
        assert throttle.hit("ip|x", max_attempts=3, window=60)
    assert not throttle.hit("ip|x", max_attempts=3, window=60)
    assert throttle.hit("ip|y", max_attempts=3, window=60)
    now[0] = 61.0
    assert throttle.hit("ip|x", max_attempts=3, window=60)
    throttle.reset("ip|x")
    for _ in range(3):
        assert throttle.hit("ip|x", max_attempts=3, window=60)


def test_throttle_forgets_expired_keys():
    now = [0.0]
    throttle = LoginThrottle(clock=lambda: now[0])
    for i in range(1000):
        assert throttle.hit(f"10.0.0.1|user{i}", max_attempts=3, window=60)
    assert len(throttle) == 1000
    now[0] = 500.0
    assert throttle.hit("10.0.0.1|admin", max_attempts=3, window=60)
    assert len(throttle) == 1
