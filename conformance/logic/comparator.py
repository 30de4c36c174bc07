"""Compare live database metadata against an Expectation Set.

One ValidationResult is recorded per logical assertion, in declaration
order: table existence, then each column, foreign key, unique constraint
and index of that table, then each changeset. Assertion failures and
deliberate skips are converted into results where they occur; only
ConnectivityError escapes and aborts the run.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from conformance.config import DEFAULT_CHANGELOG_TABLE
from conformance.db.metadata_reader import MetadataReader
from conformance.errors import SchemaAssertionError, SkippedCheck, expect, skip
from conformance.logic.type_categories import compatible
from conformance.models.expectations import (
    ChangesetExpectation,
    ColumnExpectation,
    ExpectationSet,
    ForeignKeyExpectation,
    IndexExpectation,
    TableExpectation,
    UniqueConstraintExpectation,
)
from conformance.models.results import CheckKind, ValidationResult, ValidationStatus

logger = logging.getLogger(__name__)


def _yes_no(flag: bool) -> str:
    return "YES" if flag else "NO"


class SchemaComparator:
    def __init__(
        self,
        reader: MetadataReader,
        expectations: ExpectationSet,
        changelog_table: str = DEFAULT_CHANGELOG_TABLE,
    ) -> None:
        self.reader = reader
        self.expectations = expectations
        self.changelog_table = changelog_table

    # -----------------------------
    # Orchestration
    # -----------------------------

    def run(self) -> List[ValidationResult]:
        results: List[ValidationResult] = []
        for table in self.expectations.tables:
            results.extend(self.check_table(table))
        for changeset in self.expectations.changesets:
            results.append(self.check_changeset(changeset))
        return results

    def _record(
        self,
        component: str,
        kind: CheckKind,
        table: Optional[str],
        check: Callable[[], str],
    ) -> ValidationResult:
        try:
            details = check()
            status = ValidationStatus.PASSED
        except SchemaAssertionError as exc:
            details = str(exc)
            status = ValidationStatus.FAILED
        except SkippedCheck as exc:
            details = str(exc)
            status = ValidationStatus.SKIPPED
        return ValidationResult(component=component, status=status, details=details, check=kind, table=table)

    def check_table(self, table: TableExpectation) -> List[ValidationResult]:
        results = [self._record(f"table:{table.name}", CheckKind.TABLE, table.name, lambda: self._table_exists(table))]
        bypass = results[0].status == ValidationStatus.SKIPPED

        def _guard(fn: Callable[[], str]) -> Callable[[], str]:
            if not bypass:
                return fn

            def _skipped() -> str:
                skip(f"Skipped - optional table {table.name} not present")
                return ""

            return _skipped

        for col in table.columns:
            results.append(self._record(
                f"column:{table.name}.{col.name}", CheckKind.COLUMN, table.name,
                _guard(lambda col=col: self._column(table.name, col)),
            ))
        for fk in table.foreign_keys:
            results.append(self._record(
                f"foreign_key:{fk.from_table}.{fk.from_column}->{fk.to_table}.{fk.to_column}",
                CheckKind.FOREIGN_KEY, table.name,
                _guard(lambda fk=fk: self._foreign_key(fk)),
            ))
        for uq in table.unique_constraints:
            results.append(self._record(
                f"unique:{table.name}.{uq.column}", CheckKind.UNIQUE, table.name,
                _guard(lambda uq=uq: self._unique(table.name, uq)),
            ))
        for idx in table.indexes:
            results.append(self._record(
                f"index:{table.name}.{idx.column}", CheckKind.INDEX, table.name,
                _guard(lambda idx=idx: self._index(table.name, idx)),
            ))
        return results

    def check_changeset(self, changeset: ChangesetExpectation) -> ValidationResult:
        return self._record(
            f"changeset:{changeset.filename}", CheckKind.CHANGESET, None,
            lambda: self._changeset(changeset),
        )

    # -----------------------------
    # Individual assertions
    # -----------------------------

    def _table_exists(self, table: TableExpectation) -> str:
        if self.reader.table_exists(table.name):
            return f"Table {table.name} exists"
        if table.skippable:
            skip(f"Skipped - optional table {table.name} not present")
        expect(False, f"Table {table.name} should exist")
        return ""

    def _column(self, table: str, expected: ColumnExpectation) -> str:
        columns = {c.name.lower(): c for c in self.reader.list_columns(table)}
        actual = columns.get(expected.name.lower())
        expect(actual is not None, f"Column {expected.name} should exist in {table} table")

        if expected.primary_key:
            pk = [c.lower() for c in self.reader.list_primary_key(table)]
            expect(
                expected.name.lower() in pk,
                f"Column {expected.name} should be part of the primary key of {table} table",
            )

        expect(
            compatible(expected.category, actual.category),
            f"Column {expected.name} in {table} table should be {expected.category.value} "
            f"but is {actual.type_name}",
        )

        if expected.nullable != actual.nullable:
            # Engines report nullability inconsistently; warn only
            logger.warning(
                "nullability_mismatch table=%s column=%s expected=%s actual=%s",
                table, expected.name,
                "NULLABLE" if expected.nullable else "NOT NULL",
                "NULLABLE" if actual.nullable else "NOT NULL",
            )
        return (
            f"Column {expected.name} exists in {table} table "
            f"(Type: {actual.type_name}, Nullable: {_yes_no(actual.nullable)})"
        )

    def _foreign_key(self, fk: ForeignKeyExpectation) -> str:
        found = any(
            ref.column.lower() == fk.from_column.lower()
            and ref.referenced_table.lower() == fk.to_table.lower()
            and ref.referenced_column.lower() == fk.to_column.lower()
            for ref in self.reader.list_foreign_keys(fk.from_table)
        )
        message = f"Foreign key constraint from {fk.from_table}.{fk.from_column} to {fk.to_table}.{fk.to_column}"
        expect(found, f"{message} should exist")
        return f"{message} exists"

    def _unique(self, table: str, uq: UniqueConstraintExpectation) -> str:
        expect(
            self.reader.has_unique_constraint(table, uq.column),
            f"Unique constraint on {uq.column} should exist in {table} table",
        )
        return f"Unique constraint on {uq.column} exists in {table} table"

    def _index(self, table: str, idx: IndexExpectation) -> str:
        matches = [i for i in self.reader.list_indexes(table) if i.column_name.lower() == idx.column.lower()]
        expect(bool(matches), f"Index on {idx.column} column should exist in {table} table")
        name = matches[0].index_name or "unnamed"
        return f"Index on {idx.column} column exists in {table} table ({name})"

    def _changeset(self, changeset: ChangesetExpectation) -> str:
        expect(
            self.reader.table_exists(self.changelog_table),
            f"Changelog table {self.changelog_table} should exist",
        )
        expect(
            self.reader.changeset_executed(changeset.filename, self.changelog_table),
            f"Changeset {changeset.filename} should be recorded in {self.changelog_table}",
        )
        return f"Changeset {changeset.filename} executed"


__all__ = ["SchemaComparator"]
