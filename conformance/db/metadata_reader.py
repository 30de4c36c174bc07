"""Runtime database introspection through SQLAlchemy's Inspector.

Every public method acquires its own scoped connection and releases it
before returning, so one check never holds a connection open across the
next. Connection and reflection failures surface as ConnectivityError;
there is no retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, TypeVar

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.exc import SQLAlchemyError

from conformance.db.base import scoped_connection
from conformance.errors import ConnectivityError
from conformance.logic.type_categories import categorize, type_name
from conformance.models.expectations import DataTypeCategory

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ReflectedColumn:
    name: str
    type_name: str
    category: DataTypeCategory
    nullable: bool


@dataclass(frozen=True)
class ReflectedForeignKey:
    column: str
    referenced_table: str
    referenced_column: str


@dataclass(frozen=True)
class ReflectedIndex:
    column_name: str
    index_name: Optional[str]
    unique: bool = False


class MetadataReader:
    """Answers structural questions about a live database.

    Table names are matched case-insensitively and resolved to the engine's
    own casing before reflection.
    """

    def __init__(self, engine: Engine, schema: Optional[str] = None) -> None:
        self.engine = engine
        self.schema = schema

    def _inspect(self, op: str, fn: Callable[[Inspector], T]) -> T:
        with scoped_connection(self.engine) as conn:
            try:
                return fn(inspect(conn))
            except (SQLAlchemyError, OSError) as exc:
                logger.error("metadata_introspection_failed op=%s error=%s", op, exc)
                raise ConnectivityError(f"Metadata introspection failed during {op}: {exc}") from exc

    @staticmethod
    def _resolve(insp: Inspector, table: str, schema: Optional[str]) -> Optional[str]:
        wanted = table.lower()
        for name in insp.get_table_names(schema=schema):
            if name.lower() == wanted:
                return name
        return None

    def list_tables(self) -> List[str]:
        return self._inspect("list_tables", lambda insp: list(insp.get_table_names(schema=self.schema)))

    def table_exists(self, name: str) -> bool:
        return self._inspect(
            "table_exists", lambda insp: self._resolve(insp, name, self.schema) is not None
        )

    def list_columns(self, table: str) -> List[ReflectedColumn]:
        def _columns(insp: Inspector) -> List[ReflectedColumn]:
            actual = self._resolve(insp, table, self.schema)
            if actual is None:
                return []
            return [
                ReflectedColumn(
                    name=col["name"],
                    type_name=type_name(col["type"]),
                    category=categorize(col["type"]),
                    nullable=bool(col.get("nullable", True)),
                )
                for col in insp.get_columns(actual, schema=self.schema)
            ]

        return self._inspect("list_columns", _columns)

    def list_primary_key(self, table: str) -> List[str]:
        def _pk(insp: Inspector) -> List[str]:
            actual = self._resolve(insp, table, self.schema)
            if actual is None:
                return []
            pk = insp.get_pk_constraint(actual, schema=self.schema) or {}
            return list(pk.get("constrained_columns") or [])

        return self._inspect("list_primary_key", _pk)

    def list_foreign_keys(self, table: str) -> List[ReflectedForeignKey]:
        """Composite keys expand to one entry per column pair."""

        def _fks(insp: Inspector) -> List[ReflectedForeignKey]:
            actual = self._resolve(insp, table, self.schema)
            if actual is None:
                return []
            out: List[ReflectedForeignKey] = []
            for fk in insp.get_foreign_keys(actual, schema=self.schema):
                for col, ref_col in zip(fk.get("constrained_columns") or [], fk.get("referred_columns") or []):
                    out.append(
                        ReflectedForeignKey(
                            column=col,
                            referenced_table=fk.get("referred_table") or "",
                            referenced_column=ref_col,
                        )
                    )
            return out

        return self._inspect("list_foreign_keys", _fks)

    def list_indexes(self, table: str) -> List[ReflectedIndex]:
        """One entry per indexed column, unique constraints included.

        Engines back unique constraints with indexes, and SQLite does not
        report its automatic ones through get_indexes().
        """

        def _indexes(insp: Inspector) -> List[ReflectedIndex]:
            actual = self._resolve(insp, table, self.schema)
            if actual is None:
                return []
            out: List[ReflectedIndex] = []
            for idx in insp.get_indexes(actual, schema=self.schema):
                for col in idx.get("column_names") or []:
                    if col is None:  # expression index
                        continue
                    out.append(ReflectedIndex(col, idx.get("name"), bool(idx.get("unique"))))
            for uq in insp.get_unique_constraints(actual, schema=self.schema):
                for col in uq.get("column_names") or []:
                    out.append(ReflectedIndex(col, uq.get("name"), True))
            return out

        return self._inspect("list_indexes", _indexes)

    def has_unique_constraint(self, table: str, column: str) -> bool:
        """True when a single-column unique constraint or unique index covers column.

        A sole primary key column is unique as well.
        """
        wanted = column.lower()

        def _unique(insp: Inspector) -> bool:
            actual = self._resolve(insp, table, self.schema)
            if actual is None:
                return False
            for uq in insp.get_unique_constraints(actual, schema=self.schema):
                cols = [c.lower() for c in uq.get("column_names") or [] if c]
                if cols == [wanted]:
                    return True
            for idx in insp.get_indexes(actual, schema=self.schema):
                cols = [c.lower() for c in idx.get("column_names") or [] if c]
                if idx.get("unique") and cols == [wanted]:
                    return True
            pk = insp.get_pk_constraint(actual, schema=self.schema) or {}
            pk_cols = [c.lower() for c in pk.get("constrained_columns") or []]
            return pk_cols == [wanted]

        return self._inspect("has_unique_constraint", _unique)

    def changeset_executed(self, fragment: str, changelog_table: str) -> bool:
        """True when a row of changelog_table has a filename containing fragment."""
        with scoped_connection(self.engine) as conn:
            try:
                actual = self._resolve(inspect(conn), changelog_table, self.schema)
                if actual is None:
                    return False
                preparer = conn.dialect.identifier_preparer
                qualified = preparer.quote(actual)
                if self.schema:
                    qualified = f"{preparer.quote_schema(self.schema)}.{qualified}"
                count = conn.execute(
                    text(f"SELECT COUNT(*) FROM {qualified} WHERE filename LIKE :pattern"),
                    {"pattern": f"%{fragment}%"},
                ).scalar()
                return bool(count)
            except (SQLAlchemyError, OSError) as exc:
                logger.error("changelog_query_failed table=%s error=%s", changelog_table, exc)
                raise ConnectivityError(f"Changelog query failed on {changelog_table}: {exc}") from exc


__all__ = [
    "MetadataReader",
    "ReflectedColumn",
    "ReflectedForeignKey",
    "ReflectedIndex",
]
