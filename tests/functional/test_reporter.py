"""Functional tests for summary aggregation and console rendering."""

from __future__ import annotations

import logging

from conformance.logic.reporter import log_results, render_summary, summarize
from conformance.models.results import CheckKind, ValidationResult, ValidationStatus


def _result(component: str, status: ValidationStatus, check: CheckKind = CheckKind.COLUMN, details: str = "ok"):
    return ValidationResult(component=component, status=status, details=details, check=check)


def _sample():
    return [
        _result("table:course", ValidationStatus.PASSED, CheckKind.TABLE, "Table course exists"),
        _result("table:quiz", ValidationStatus.FAILED, CheckKind.TABLE, "Table quiz should exist"),
        _result("table:spring_ai", ValidationStatus.SKIPPED, CheckKind.TABLE, "Skipped - optional table spring_ai not present"),
        _result("column:course.title", ValidationStatus.PASSED),
        _result("column:quiz.title", ValidationStatus.FAILED, details="Column title should exist in quiz table"),
        _result("column:course.price", ValidationStatus.PASSED),
    ]


def test_summary_counts_and_percentages():
    summary = summarize(_sample())

    assert (summary.total, summary.passed, summary.failed, summary.skipped) == (6, 3, 2, 1)
    assert summary.passed_pct == 50.0
    assert summary.failed_pct == 33.3
    assert summary.skipped_pct == 16.7
    assert summary.table_coverage_pct == 33.3
    assert [r.component for r in summary.failures] == ["table:quiz", "column:quiz.title"]
    assert summary.successful is False


def test_empty_results_summarize_to_zero():
    summary = summarize([])
    assert summary.total == 0
    assert summary.passed_pct == summary.failed_pct == summary.skipped_pct == 0.0
    assert summary.table_coverage_pct == 0.0
    assert summary.successful is True


def test_render_lists_every_failure():
    report = render_summary(summarize(_sample()))

    assert report.splitlines()[0] == "=== Schema Conformance Summary ==="
    assert "PASSED:  3 (50.0%)" in report
    assert "FAILED:  2 (33.3%)" in report
    assert "SKIPPED: 1 (16.7%)" in report
    assert "Tables present: 33.3%" in report
    assert "  - table:quiz: Table quiz should exist" in report
    assert "  - column:quiz.title: Column title should exist in quiz table" in report
    assert report.endswith("Result: FAILURE")


def test_render_success_has_no_failure_section():
    report = render_summary(summarize([_result("table:course", ValidationStatus.PASSED, CheckKind.TABLE)]))
    assert "Failed checks:" not in report
    assert report.endswith("Result: SUCCESS")


def test_log_results_uses_level_per_status(caplog):
    with caplog.at_level(logging.INFO, logger="conformance.logic.reporter"):
        log_results(_sample()[:3])

    levels = [(rec.levelno, rec.getMessage().split(" ")[0]) for rec in caplog.records]
    assert levels == [
        (logging.INFO, "check_passed"),
        (logging.ERROR, "check_failed"),
        (logging.WARNING, "check_skipped"),
    ]
