from __future__ import annotations
import ssl

import pytest
from ldap3.core.exceptions import LDAPBindError, LDAPException, LDAPSocketOpenError

from app import create_app
from blueprints.auth import authenticators as auth
from blueprints.auth.authenticators import (
    BAD_CREDENTIALS, DIRECTORY_UNAVAILABLE, LdapDirectory, StaticDirectory,
    create_authenticator, groups_from_member_of,
)

TANAR_ATTRS = {
    "sAMAccountName": ["tanar"],
    "displayName": ["Teszt Tanár"],
    "mail": ["tanar@suli.local"],
    "memberOf": ["CN=Tanarok,OU=Groups,DC=suli,DC=local", "CN=Mindenki,OU=Groups,DC=suli,DC=local"],
}


class FakeEntry:
    def __init__(self, attrs):
        self.entry_attributes_as_dict = attrs


class FakeConnection:
    """Подменяет ldap3.Connection: bind в конструкторе, search заполняет entries."""
    bind_error: Exception | None = None
    search_error: Exception | None = None
    attrs: dict | None = None
    last: "FakeConnection | None" = None

    def __init__(self, server, user=None, password=None, **kw):
        if FakeConnection.bind_error is not None:
            raise FakeConnection.bind_error
        self.server = server
        self.user = user
        self.password = password
        self.entries = []
        self.search_filter = None
        self.unbound = False
        FakeConnection.last = self

    def search(self, search_base, search_filter, **kw):
        self.search_filter = search_filter
        if FakeConnection.search_error is not None:
            raise FakeConnection.search_error
        self.entries = [FakeEntry(FakeConnection.attrs)] if FakeConnection.attrs else []
        return bool(self.entries)

    def unbind(self):
        self.unbound = True


@pytest.fixture()
def fake_ldap(monkeypatch):
    FakeConnection.bind_error = None
    FakeConnection.search_error = None
    FakeConnection.attrs = dict(TANAR_ATTRS)
    FakeConnection.last = None
    monkeypatch.setattr(auth, "Connection", FakeConnection)
    return FakeConnection


def _directory(**kw):
    return LdapDirectory("ad.suli.local", domain="suli.local", search_base="dc=suli,dc=local", **kw)


# ---------- memberOf ----------
def test_groups_from_member_of():
    assert groups_from_member_of([
        "CN=Tanarok,OU=Groups,DC=suli,DC=local",
        "cn=Vezetoseg,DC=suli,DC=local",
        "OU=Groups,DC=suli,DC=local",
    ]) == ["tanarok", "vezetoseg"]
    assert groups_from_member_of("CN=Irodistak,DC=suli,DC=local") == ["irodistak"]
    assert groups_from_member_of(None) == []


# ---------- LdapDirectory ----------
def test_ldap_success_reads_profile_and_groups(fake_ldap):
    res = _directory().authenticate("tanar", "secret")
    assert res.success is True
    assert res.user == {"username": "tanar", "displayName": "Teszt Tanár", "email": "tanar@suli.local"}
    assert res.groups == ["tanarok", "mindenki"]
    conn = fake_ldap.last
    assert conn.user == "tanar@suli.local"
    assert conn.search_filter == "(sAMAccountName=tanar)"
    assert conn.unbound


def test_ldap_rejected_bind_is_bad_credentials(fake_ldap):
    fake_ldap.bind_error = LDAPBindError("invalidCredentials")
    res = _directory().authenticate("tanar", "wrong")
    assert res.success is False
    assert res.error == BAD_CREDENTIALS


def test_ldap_unreachable_server(fake_ldap):
    fake_ldap.bind_error = LDAPSocketOpenError("connection refused")
    res = _directory().authenticate("tanar", "secret")
    assert res.success is False
    assert res.error == DIRECTORY_UNAVAILABLE


def test_ldap_failed_search_still_logs_in_without_groups(fake_ldap):
    fake_ldap.search_error = LDAPException("search failed")
    res = _directory().authenticate("tanar", "secret")
    assert res.success is True
    assert res.groups == []
    assert res.user["displayName"] == "tanar"
    assert fake_ldap.last.unbound


def test_ldap_user_not_found_in_search(fake_ldap):
    fake_ldap.attrs = None
    res = _directory().authenticate("tanar", "secret")
    assert res.success is True
    assert res.groups == []


def test_ldap_filter_is_escaped(fake_ldap):
    _directory().authenticate("a*b)(x", "secret")
    assert fake_ldap.last.search_filter == "(sAMAccountName=a\\2ab\\29\\28x)"


def test_tls_validation_follows_config():
    assert _directory()._server().tls.validate == ssl.CERT_NONE
    assert _directory(verify_cert=True)._server().tls.validate == ssl.CERT_REQUIRED
    assert _directory(use_ssl=False)._server().tls is None


# ---------- factory ----------
def test_create_authenticator_backends():
    app = create_app("test-memory")
    assert isinstance(create_authenticator(app), StaticDirectory)

    app.config.update(DIRECTORY_BACKEND="ldap", LDAP_VERIFY_CERT=True)
    directory = create_authenticator(app)
    assert isinstance(directory, LdapDirectory)
    assert directory.verify_cert is True
    assert directory.domain == app.config["LDAP_DOMAIN"]

    app.config["DIRECTORY_BACKEND"] = "kerberos"
    with pytest.raises(ValueError):
        create_authenticator(app)


def test_login_with_unreachable_directory_is_401(fake_ldap):
    fake_ldap.bind_error = LDAPSocketOpenError("connection refused")
    app = create_app("test-memory")
    app.extensions["directory_authenticator"] = _directory()
    r = app.test_client().post("/api/ldap/auth", json={"username": "tanar", "password": "secret"})
    assert r.status_code == 401
    assert r.get_json()["error"] == DIRECTORY_UNAVAILABLE
