"""Schema conformance integration steps.

Steps build a schema (fixture migrations or ad-hoc DDL), declare the
expected elements, run the checker and inspect the recorded results.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List

from behave import given, when, then, use_step_matcher  # type: ignore
from sqlalchemy import text

from conformance.db.metadata_reader import MetadataReader
from conformance.db.migrations_runner import apply_migrations
from conformance.logic.comparator import SchemaComparator
from conformance.logic.expectation_set import default_expectation_set
from conformance.logic.reporter import summarize
from conformance.models.expectations import (
    ChangesetExpectation,
    ColumnExpectation,
    DataTypeCategory,
    ExpectationSet,
    ForeignKeyExpectation,
    TableExpectation,
)
from conformance.models.results import CheckKind, ValidationStatus


use_step_matcher("re")


def _expected_table(context: Any, name: str) -> Dict[str, Any]:
    return context.expected_tables.setdefault(
        name, {"columns": [], "foreign_keys": [], "skippable": False}
    )


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in {"true", "yes", "1"}


def _expectations(context: Any) -> ExpectationSet:
    if getattr(context, "builtin_expectations", False):
        return default_expectation_set()
    tables = tuple(
        TableExpectation(
            name=name,
            columns=tuple(entry["columns"]),
            foreign_keys=tuple(entry["foreign_keys"]),
            skippable=entry["skippable"],
        )
        for name, entry in context.expected_tables.items()
    )
    return ExpectationSet(tables=tables, changesets=tuple(context.changesets))


def _run(context: Any):
    comparator = SchemaComparator(MetadataReader(context.engine), context.expectations)
    return comparator.run()


def _result(context: Any, component: str):
    matches = [r for r in context.results if r.component == component]
    assert len(matches) == 1, f"Expected one result for {component}, found {len(matches)}"
    return matches[0]


# Schema under test


@given(r"an empty database")
def step_given_empty_database(context):
    context.builtin_expectations = False


@given(r"a database built from the fixture migrations")
def step_given_fixture_database(context):
    context.builtin_expectations = False
    apply_migrations(context.engine, context.fixture_migrations)


@given(r'the database has table "(?P<table>[^"]+)" with columns "(?P<columns>[^"]+)"')
def step_given_table_with_columns(context, table: str, columns: str):
    names: List[str] = [c.strip() for c in columns.split(",") if c.strip()]
    defs = [f"{n} BIGINT PRIMARY KEY" if n == "id" else f"{n} VARCHAR(255)" for n in names]
    with context.engine.begin() as conn:
        conn.execute(text(f"CREATE TABLE {table} ({', '.join(defs)})"))


# Expectations


@given(r'the expected table "(?P<table>[^"]+)" has columns:')
def step_given_expected_columns(context, table: str):
    entry = _expected_table(context, table)
    for row in context.table:
        entry["columns"].append(
            ColumnExpectation(
                name=row["name"],
                category=DataTypeCategory(row["category"]),
                nullable=_as_bool(row["nullable"]),
                primary_key=_as_bool(row["primary_key"]),
            )
        )


@given(r'the expected foreign key "(?P<source>[^".]+)\.(?P<column>[^"]+)" references "(?P<target>[^".]+)\.(?P<target_column>[^"]+)"')
def step_given_expected_fk(context, source: str, column: str, target: str, target_column: str):
    _expected_table(context, source)["foreign_keys"].append(
        ForeignKeyExpectation(from_table=source, from_column=column, to_table=target, to_column=target_column)
    )


@given(r'the expected table "(?P<table>[^"]+)" is optional')
def step_given_optional_table(context, table: str):
    _expected_table(context, table)["skippable"] = True


@given(r'the expected changeset "(?P<filename>[^"]+)"')
def step_given_expected_changeset(context, filename: str):
    context.changesets.append(ChangesetExpectation(filename=filename))


@given(r"the built-in platform expectations")
def step_given_builtin_expectations(context):
    context.builtin_expectations = True


# Run and inspect


@when(r"the conformance checks run")
def step_when_checks_run(context):
    context.expectations = _expectations(context)
    context.results = _run(context)


@then(r"exactly (?P<count>\d+) checks? failed")
def step_then_failed_count(context, count: str):
    failed = [r for r in context.results if r.status == ValidationStatus.FAILED]
    assert len(failed) == int(count), f"Expected {count} failed, got {[(r.component, r.details) for r in failed]}"


@then(r'the result for "(?P<component>[^"]+)" is (?P<status>PASSED|FAILED|SKIPPED)')
def step_then_status(context, component: str, status: str):
    result = _result(context, component)
    assert result.status == ValidationStatus(status), f"{component}: {result.status.value} ({result.details})"


@then(r'the result for "(?P<component>[^"]+)" has details "(?P<details>[^"]+)"')
def step_then_details(context, component: str, details: str):
    result = _result(context, component)
    assert result.details == details, f"{component}: {result.details!r} != {details!r}"


@then(r"every expected table is checked exactly once")
def step_then_tables_once(context):
    counts = Counter(r.table for r in context.results if r.check == CheckKind.TABLE)
    assert set(counts) == set(context.expectations.table_names)
    assert all(n == 1 for n in counts.values()), counts


@then(r"the status counts add up to the total")
def step_then_counts_add_up(context):
    summary = summarize(context.results)
    assert summary.passed + summary.failed + summary.skipped == summary.total == len(context.results)


@then(r"running the checks again yields the same outcomes")
def step_then_idempotent(context):
    again = _run(context)
    assert [r.outcome() for r in again] == [r.outcome() for r in context.results]
