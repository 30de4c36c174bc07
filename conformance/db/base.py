"""SQLAlchemy engine and scoped connection helpers.

Checks run against PostgreSQL, H2-style test databases or SQLite. No
declarative models are defined here; this module only manages connection
lifecycle.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from conformance.errors import ConnectivityError

logger = logging.getLogger(__name__)


def _db_url() -> str:
    return (
        os.getenv("TEST_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or "sqlite+pysqlite:///:memory:"
    )


# Module-level cached Engine so repeated runs in one process share a pool
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str | None = None) -> Engine:
    """Return a cached SQLAlchemy Engine for the given URL.

    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive so the schema survives between scoped connections.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"pool_pre_ping": True}
        if resolved_url.startswith("sqlite") and ":memory:" in resolved_url:
            kwargs.update({
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            })
        if _ENGINE is not None:
            _ENGINE.dispose()
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url

    return _ENGINE


def dispose_engine() -> None:
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None


@contextmanager
def scoped_connection(engine: Engine) -> Generator[Connection, None, None]:
    """Yield a connection that is released on every exit path.

    Driver and pool failures surface as ConnectivityError; errors raised by
    the caller inside the block propagate unchanged.
    """
    try:
        conn = engine.connect()
    except (SQLAlchemyError, OSError) as exc:
        logger.error("db_connect_failed url=%s", engine.url.render_as_string(hide_password=True), exc_info=True)
        raise ConnectivityError(f"Cannot connect to database: {exc}") from exc
    try:
        yield conn
    finally:
        conn.close()


__all__ = ["get_engine", "dispose_engine", "scoped_connection"]
