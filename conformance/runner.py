"""Entry points used by test runners.

`check_schema` runs every check once and returns the ordered results.
`assert_schema_conforms` additionally logs, summarises and raises when any
check failed, which is what a pytest or behave step wants.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.engine import Engine

from conformance.config import load_config
from conformance.db.base import get_engine
from conformance.db.metadata_reader import MetadataReader
from conformance.errors import SchemaConformanceError
from conformance.logic.comparator import SchemaComparator
from conformance.logic.expectation_set import default_expectation_set, load_expectation_set
from conformance.logic.reporter import log_results, render_summary, summarize
from conformance.models.expectations import ExpectationSet
from conformance.models.results import ValidationResult, ValidationSummary

logger = logging.getLogger(__name__)


def check_schema(
    engine: Optional[Engine] = None,
    expectations: Optional[ExpectationSet] = None,
    *,
    schema: Optional[str] = None,
    changelog_table: Optional[str] = None,
) -> List[ValidationResult]:
    """Run all checks and return results in declaration order.

    Missing arguments are resolved from `load_config()`: the database DSN,
    the optional expectations document (falling back to the built-in
    platform schema) and the changelog table name. Raises ConnectivityError
    when the database cannot be reached or introspected.
    """
    cfg = load_config()
    if engine is None:
        engine = get_engine(cfg.database.dsn)
    if expectations is None:
        path = cfg.checks.expectations_path
        expectations = load_expectation_set(path) if path else default_expectation_set()
    reader = MetadataReader(engine, schema=schema if schema is not None else cfg.database.schema_name)
    comparator = SchemaComparator(reader, expectations, changelog_table or cfg.checks.changelog_table)

    logger.info(
        "conformance_run_start tables=%d changesets=%d",
        len(expectations.tables), len(expectations.changesets),
    )
    results = comparator.run()
    logger.info("conformance_run_complete checks=%d", len(results))
    return results


def assert_schema_conforms(
    engine: Optional[Engine] = None,
    expectations: Optional[ExpectationSet] = None,
    **kwargs,
) -> ValidationSummary:
    results = check_schema(engine, expectations, **kwargs)
    log_results(results)
    summary = summarize(results)
    report = render_summary(summary)
    logger.info("conformance_summary\n%s", report)
    if not summary.successful:
        raise SchemaConformanceError(report, summary=summary)
    return summary


__all__ = ["check_schema", "assert_schema_conforms"]
