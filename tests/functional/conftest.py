from __future__ import annotations

"""Functional test bootstrap for schema conformance checks.

Each test gets its own file-backed SQLite database under pytest's tmp_path
so reflection sees exactly the schema the test builds. The `platform_engine`
fixture applies the fixture migrations (users, courses, file metadata) via
the migrations runner, which also fills the changelog table.
"""

import pathlib
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from conformance.db.migrations_runner import apply_migrations

_ROOT = pathlib.Path(__file__).resolve().parents[2]
FIXTURE_MIGRATIONS = _ROOT / "tests" / "fixtures" / "migrations"


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path) -> None:
    """Keep ambient env and project config files out of load_config()."""
    for key in (
        "DATABASE_URL",
        "TEST_DATABASE_URL",
        "DATABASE_SCHEMA",
        "CONFORMANCE_EXPECTATIONS",
        "CONFORMANCE_CHANGELOG_TABLE",
        "CONFORMANCE_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def engine(tmp_path: pathlib.Path) -> Iterator[Engine]:
    eng = create_engine(f"sqlite:///{tmp_path / 'conformance.db'}")
    yield eng
    eng.dispose()


@pytest.fixture()
def platform_engine(engine: Engine) -> Engine:
    apply_migrations(engine, FIXTURE_MIGRATIONS)
    return engine
