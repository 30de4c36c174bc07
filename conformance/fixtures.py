"""Test-data fixtures for runs that need seeded users and a caller identity.

`FixtureContext` owns the users created during one test run; pass it to
every fixture call instead of relying on a shared module-level cache.
`build_request_context` produces the authenticated identity a test acts as.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Iterable, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)

ROLE_ADMIN = "ROLE_ADMIN"
ROLE_USER = "ROLE_USER"

DEFAULT_TEST_PASSWORD = "$2a$10$VEjxo0jq2YG9Rbk2HmX9S.k1uZBGYUHdUcid3g/vfiEl7lwWgOH/K"
DEFAULT_LANG_KEY = "en"
TEST_EMAIL_DOMAIN = "@test.com"


@dataclass(frozen=True)
class FixtureUser:
    id: int
    login: str
    email: str
    first_name: str
    last_name: str
    authorities: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class RequestContext:
    username: str
    authorities: FrozenSet[str]
    authenticated: bool = True

    def has_authority(self, name: str) -> bool:
        return name in self.authorities


def build_request_context(username: str, authorities: Iterable[str]) -> RequestContext:
    if not username or not username.strip():
        raise ValueError("username must be a non-empty string")
    return RequestContext(username=username.strip(), authorities=frozenset(authorities))


def admin_context(username: str = "admin") -> RequestContext:
    return build_request_context(username, (ROLE_ADMIN, ROLE_USER))


def teacher_context(username: str = "teacher") -> RequestContext:
    return build_request_context(username, (ROLE_USER,))


def student_context(username: str = "student") -> RequestContext:
    return build_request_context(username, (ROLE_USER,))


@dataclass
class FixtureContext:
    """Users created during one test run, keyed by login."""

    users: Dict[str, FixtureUser] = field(default_factory=dict)

    def get_user(self, login: str) -> Optional[FixtureUser]:
        return self.users.get(login)

    def ensure_authorities(self, conn: Connection, names: Iterable[str]) -> None:
        for name in names:
            exists = conn.execute(
                text("SELECT COUNT(*) FROM jhi_authority WHERE name = :name"), {"name": name}
            ).scalar()
            if not exists:
                conn.execute(text("INSERT INTO jhi_authority (name) VALUES (:name)"), {"name": name})
                logger.debug("fixture_authority_created name=%s", name)

    def create_user(
        self,
        conn: Connection,
        login: str,
        first_name: str = "Test",
        last_name: str = "User",
        authorities: Iterable[str] = (ROLE_USER,),
    ) -> FixtureUser:
        """Return the cached user, reuse an existing row, or insert a new one."""
        cached = self.users.get(login)
        if cached is not None:
            return cached

        auths = frozenset(authorities)
        row = conn.execute(
            text("SELECT id, email, first_name, last_name FROM jhi_user WHERE login = :login"),
            {"login": login},
        ).first()
        if row is None:
            self.ensure_authorities(conn, auths)
            conn.execute(
                text(
                    "INSERT INTO jhi_user (login, email, password_hash, first_name, last_name, "
                    "activated, lang_key, created_by, created_date) VALUES "
                    "(:login, :email, :password_hash, :first_name, :last_name, :activated, "
                    ":lang_key, :created_by, :created_date)"
                ),
                {
                    "login": login,
                    "email": login + TEST_EMAIL_DOMAIN,
                    "password_hash": DEFAULT_TEST_PASSWORD,
                    "first_name": first_name,
                    "last_name": last_name,
                    "activated": True,
                    "lang_key": DEFAULT_LANG_KEY,
                    "created_by": "system",
                    "created_date": datetime.now(timezone.utc).replace(tzinfo=None),
                },
            )
            row = conn.execute(
                text("SELECT id, email, first_name, last_name FROM jhi_user WHERE login = :login"),
                {"login": login},
            ).one()
            for name in sorted(auths):
                conn.execute(
                    text("INSERT INTO jhi_user_authority (user_id, authority_name) VALUES (:uid, :name)"),
                    {"uid": row.id, "name": name},
                )
            logger.debug("fixture_user_created login=%s authorities=%s", login, sorted(auths))
        else:
            # Existing rows keep the roles they were granted
            auths = frozenset(
                conn.execute(
                    text("SELECT authority_name FROM jhi_user_authority WHERE user_id = :uid"),
                    {"uid": row.id},
                ).scalars()
            )
            logger.debug("fixture_user_reused login=%s authorities=%s", login, sorted(auths))

        user = FixtureUser(
            id=int(row.id),
            login=login,
            email=row.email,
            first_name=row.first_name,
            last_name=row.last_name,
            authorities=auths,
        )
        self.users[login] = user
        return user

    def clear(self) -> None:
        self.users.clear()


__all__ = [
    "ROLE_ADMIN",
    "ROLE_USER",
    "FixtureUser",
    "RequestContext",
    "FixtureContext",
    "build_request_context",
    "admin_context",
    "teacher_context",
    "student_context",
]
