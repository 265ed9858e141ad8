# blueprints/auth/authenticators.py
"""Directory authenticators: username/password -> profile + group names.

`StaticDirectory` serves the built-in accounts from config (offline/dev),
`LdapDirectory` binds against Active Directory with ldap3. Neither retries:
an unreachable server is just a failed login.
"""
from __future__ import annotations
import logging
import re
import secrets
import ssl
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol

from flask import Flask, current_app
from ldap3 import NONE, SUBTREE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPBindError, LDAPException
from ldap3.utils.conv import escape_filter_chars

log = logging.getLogger(__name__)

BAD_CREDENTIALS = "invalid username or password"
DIRECTORY_UNAVAILABLE = "directory server unavailable"

_CN_RE = re.compile(r"^CN=([^,]+)", re.IGNORECASE)


@dataclass
class AuthResult:
    success: bool
    user: Optional[dict] = None
    groups: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "AuthResult":
        return cls(success=False, error=error)


class DirectoryAuthenticator(Protocol):
    def authenticate(self, username: str, password: str) -> AuthResult: ...


class StaticDirectory:
    def __init__(self, users: Mapping[str, Mapping[str, Any]]):
        self.users = dict(users or {})

    def authenticate(self, username: str, password: str) -> AuthResult:
        entry = self.users.get(username)
        expected = str(entry.get("password", "")) if entry else ""
        if not entry or not secrets.compare_digest(expected.encode(), password.encode()):
            return AuthResult.failed(BAD_CREDENTIALS)
        return AuthResult(
            success=True,
            user={
                "username": username,
                "displayName": entry.get("displayName") or username,
                "email": entry.get("email", ""),
            },
            groups=[g.lower() for g in entry.get("groups", [])],
        )


def groups_from_member_of(values) -> list[str]:
    """memberOf DN-ы -> имена групп (CN в нижнем регистре)."""
    if isinstance(values, str):
        values = [values]
    out = []
    for dn in values or ():
        m = _CN_RE.match(str(dn))
        if m:
            out.append(m.group(1).lower())
    return out


class LdapDirectory:
    def __init__(self, host: str, port: int = 636, use_ssl: bool = True, domain: str = "",
                 search_base: str = "", timeout: int = 10, verify_cert: bool = False,
                 ca_certs_file: Optional[str] = None):
        self.host = host
        self.port = port
        self.use_ssl = use_ssl
        self.domain = domain
        self.search_base = search_base
        self.timeout = timeout
        self.verify_cert = verify_cert
        self.ca_certs_file = ca_certs_file

    def _server(self) -> Server:
        tls = None
        if self.use_ssl:
            # у школьного AD обычно self-signed сертификат: проверка включается LDAP_VERIFY_CERT
            tls = Tls(validate=ssl.CERT_REQUIRED if self.verify_cert else ssl.CERT_NONE,
                      ca_certs_file=self.ca_certs_file)
        return Server(self.host, port=self.port, use_ssl=self.use_ssl, tls=tls,
                      get_info=NONE, connect_timeout=self.timeout)

    def _bind_dn(self, username: str) -> str:
        return f"{username}@{self.domain}" if self.domain else username

    def authenticate(self, username: str, password: str) -> AuthResult:
        try:
            conn = Connection(self._server(), user=self._bind_dn(username), password=password,
                              auto_bind=True, receive_timeout=self.timeout, raise_exceptions=False)
        except LDAPBindError:
            log.info("ldap bind rejected for %s", username)
            return AuthResult.failed(BAD_CREDENTIALS)
        except LDAPException as ex:
            log.warning("ldap server unreachable: %s", ex)
            return AuthResult.failed(DIRECTORY_UNAVAILABLE)

        user = {"username": username, "displayName": username, "email": ""}
        groups: list[str] = []
        try:
            conn.search(
                self.search_base,
                f"(sAMAccountName={escape_filter_chars(username)})",
                search_scope=SUBTREE,
                attributes=["displayName", "mail", "memberOf", "sAMAccountName"],
            )
            if conn.entries:
                attrs = conn.entries[0].entry_attributes_as_dict
                user = {
                    "username": _first(attrs.get("sAMAccountName")) or username,
                    "displayName": _first(attrs.get("displayName")) or username,
                    "email": _first(attrs.get("mail")) or "",
                }
                groups = groups_from_member_of(attrs.get("memberOf"))
        except LDAPException as ex:
            # bind прошёл, значит пароль верный: пускаем без групп
            log.warning("ldap search failed for %s: %s", username, ex)
        finally:
            conn.unbind()
        return AuthResult(success=True, user=user, groups=groups)


def _first(values):
    if isinstance(values, (list, tuple)):
        return values[0] if values else None
    return values


def create_authenticator(app: Flask) -> DirectoryAuthenticator:
    backend = (app.config.get("DIRECTORY_BACKEND") or "static").lower()
    if backend == "ldap":
        return LdapDirectory(
            host=app.config["LDAP_SERVER"],
            port=app.config.get("LDAP_PORT", 636),
            use_ssl=app.config.get("LDAP_USE_SSL", True),
            domain=app.config.get("LDAP_DOMAIN", ""),
            search_base=app.config.get("LDAP_SEARCH_BASE", ""),
            timeout=app.config.get("LDAP_TIMEOUT", 10),
            verify_cert=app.config.get("LDAP_VERIFY_CERT", False),
            ca_certs_file=app.config.get("LDAP_CA_CERTS_FILE"),
        )
    if backend == "static":
        return StaticDirectory(app.config.get("STATIC_DIRECTORY_USERS", {}))
    raise ValueError(f"unknown DIRECTORY_BACKEND: {backend}")


def init_authenticator(app: Flask) -> DirectoryAuthenticator:
    auth = create_authenticator(app)
    app.extensions["directory_authenticator"] = auth
    return auth


def get_authenticator() -> DirectoryAuthenticator:
    return current_app.extensions["directory_authenticator"]
