"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from a migrations directory. Skips
rollback files and records applied filenames in a changelog table
(`databasechangelog` by default) so the same migration is never reapplied
and changeset checks can confirm what ran. Intended for building fixture
schemas in tests; production databases keep their own migration tooling.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Set

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, insert, select
from sqlalchemy.engine import Connection, Engine

from conformance.config import DEFAULT_CHANGELOG_TABLE

logger = logging.getLogger(__name__)


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        # Skip rollback scripts in forward runs
        if "rollback" in p.name.lower():
            continue
        yield p


def _changelog(name: str) -> Table:
    return Table(
        name,
        MetaData(),
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("filename", String(255), nullable=False),
        Column("dateexecuted", DateTime, nullable=False),
    )


def _exec_sql_compat(conn: Connection, sql: str) -> None:
    """Execute SQL text, tolerating multi-statement files on SQLite.

    SQLite's DB-API (pysqlite) does not allow multiple statements in a single
    execute() call, so statements are split on ';' for SQLite only, ignoring
    comments, empty segments and transaction control. Other dialects receive
    the full script as-is.
    """
    name = (getattr(conn.dialect, "name", "") or "").lower()
    if "sqlite" not in name:
        conn.exec_driver_sql(sql)
        return
    body = "\n".join(ln for ln in sql.splitlines() if not ln.strip().startswith("--"))
    for stmt in body.split(";"):
        s = stmt.strip()
        if not s:
            continue
        if s.upper() in {"BEGIN", "COMMIT", "END"}:
            continue
        conn.exec_driver_sql(s)


def applied_migrations(engine: Engine, changelog_table: str = DEFAULT_CHANGELOG_TABLE) -> List[str]:
    """Filenames recorded in the changelog table, in application order."""
    table = _changelog(changelog_table)
    with engine.connect() as conn:
        if not engine.dialect.has_table(conn, changelog_table):
            return []
        rows = conn.execute(select(table.c.filename).order_by(table.c.id)).all()
    return [row[0] for row in rows]


def apply_migrations(
    engine: Engine,
    migrations_dir: str | os.PathLike[str] = "migrations",
    changelog_table: str = DEFAULT_CHANGELOG_TABLE,
) -> List[str]:
    """Apply pending migrations and return the filenames applied by this call."""
    root = Path(migrations_dir)
    if not root.exists():
        logger.warning("migrations_dir_missing path=%s", root)
        return []

    table = _changelog(changelog_table)
    applied_now: List[str] = []
    with engine.begin() as conn:
        table.create(conn, checkfirst=True)
        applied: Set[str] = {Path(f).name for f in conn.execute(select(table.c.filename)).scalars()}
        for sql_path in _iter_sql_files(root):
            fname = sql_path.name
            if fname in applied:
                continue
            sql = sql_path.read_text(encoding="utf-8")
            if not sql.strip():
                continue
            _exec_sql_compat(conn, sql)
            conn.execute(
                insert(table).values(
                    filename=f"{root.name}/{fname}",
                    # Second precision, UTC, stored naive for portability
                    dateexecuted=datetime.now(timezone.utc).replace(microsecond=0, tzinfo=None),
                )
            )
            applied_now.append(fname)
            logger.info("migration_applied file=%s", fname)
    return applied_now


__all__ = ["apply_migrations", "applied_migrations"]
