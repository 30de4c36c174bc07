"""Aggregate validation results into counts, percentages and console text."""

from __future__ import annotations

import logging
from typing import List, Sequence

from conformance.models.results import CheckKind, ValidationResult, ValidationStatus, ValidationSummary

logger = logging.getLogger(__name__)


def _pct(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part * 100.0 / whole, 1)


def summarize(results: Sequence[ValidationResult]) -> ValidationSummary:
    passed = sum(1 for r in results if r.status == ValidationStatus.PASSED)
    failed = sum(1 for r in results if r.status == ValidationStatus.FAILED)
    skipped = sum(1 for r in results if r.status == ValidationStatus.SKIPPED)
    total = len(results)

    table_checks = [r for r in results if r.check == CheckKind.TABLE]
    tables_present = sum(1 for r in table_checks if r.status == ValidationStatus.PASSED)

    return ValidationSummary(
        total=total,
        passed=passed,
        failed=failed,
        skipped=skipped,
        passed_pct=_pct(passed, total),
        failed_pct=_pct(failed, total),
        skipped_pct=_pct(skipped, total),
        table_coverage_pct=_pct(tables_present, len(table_checks)),
        failures=tuple(r for r in results if r.status == ValidationStatus.FAILED),
    )


def render_summary(summary: ValidationSummary) -> str:
    """Console text: counts with percentages, then every failed check."""
    lines: List[str] = [
        "=== Schema Conformance Summary ===",
        f"Total checks: {summary.total}",
        f"PASSED:  {summary.passed} ({summary.passed_pct:.1f}%)",
        f"FAILED:  {summary.failed} ({summary.failed_pct:.1f}%)",
        f"SKIPPED: {summary.skipped} ({summary.skipped_pct:.1f}%)",
        f"Tables present: {summary.table_coverage_pct:.1f}%",
    ]
    if summary.failures:
        lines.append("Failed checks:")
        for r in summary.failures:
            lines.append(f"  - {r.component}: {r.details}")
    lines.append("Result: " + ("SUCCESS" if summary.successful else "FAILURE"))
    return "\n".join(lines)


def log_results(results: Sequence[ValidationResult]) -> None:
    for r in results:
        if r.status == ValidationStatus.PASSED:
            logger.info("check_passed component=%s details=%s", r.component, r.details)
        elif r.status == ValidationStatus.SKIPPED:
            logger.warning("check_skipped component=%s details=%s", r.component, r.details)
        else:
            logger.error("check_failed component=%s details=%s", r.component, r.details)


__all__ = ["summarize", "render_summary", "log_results"]
