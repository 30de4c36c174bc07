"""Functional tests for engine caching, scoped connections and logging setup."""

from __future__ import annotations

import logging

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from conformance.db.base import dispose_engine, get_engine, scoped_connection
from conformance.errors import ConnectivityError
from conformance.logging_setup import configure_logging


@pytest.fixture(autouse=True)
def _fresh_engine_cache():
    dispose_engine()
    yield
    dispose_engine()


def test_get_engine_is_cached_per_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'a.db'}"
    assert get_engine(url) is get_engine(url)
    assert get_engine(f"sqlite:///{tmp_path / 'b.db'}") is not get_engine(url)


def test_in_memory_engine_keeps_schema_between_connections():
    engine = get_engine()
    assert isinstance(engine.pool, StaticPool)
    with scoped_connection(engine) as conn:
        conn.execute(text("CREATE TABLE spring_ai (id INTEGER PRIMARY KEY)"))
    with scoped_connection(engine) as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM spring_ai")).scalar_one() == 0


def test_scoped_connection_released_when_block_raises(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'c.db'}")
    with pytest.raises(RuntimeError):
        with scoped_connection(engine):
            raise RuntimeError("boom")
    assert engine.pool.checkedout() == 0
    engine.dispose()


def test_scoped_connection_wraps_connect_failure(tmp_path, caplog):
    engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'd.db'}")
    with caplog.at_level(logging.ERROR, logger="conformance.db.base"):
        with pytest.raises(ConnectivityError, match="Cannot connect to database"):
            with scoped_connection(engine):
                pass
    assert any("db_connect_failed" in rec.getMessage() for rec in caplog.records)
    engine.dispose()


def test_configure_logging_only_adjusts_level_when_handlers_exist():
    root = logging.getLogger()
    previous = root.level
    marker = logging.NullHandler()
    root.addHandler(marker)
    before = list(root.handlers)
    try:
        configure_logging("debug")
        assert root.level == logging.DEBUG
        assert root.handlers == before
    finally:
        root.removeHandler(marker)
        root.setLevel(previous)


def test_configure_logging_defaults_to_configured_level(monkeypatch):
    monkeypatch.setenv("CONFORMANCE_LOG_LEVEL", "error")
    root = logging.getLogger()
    previous = root.level
    marker = logging.NullHandler()
    root.addHandler(marker)
    try:
        configure_logging()
        assert root.level == logging.ERROR
    finally:
        root.removeHandler(marker)
        root.setLevel(previous)
