"""Error taxonomy for schema conformance runs.

- `ConnectivityError` aborts the whole run.
- `SchemaAssertionError` is caught per check and recorded as FAILED.
- `SkippedCheck` is caught per check and recorded as SKIPPED.
"""

from __future__ import annotations

from typing import Any


class ConformanceError(Exception):
    pass


class ConnectivityError(ConformanceError):
    """Database could not be reached or introspected."""


class SchemaAssertionError(AssertionError):
    """Expected schema element is absent or mismatched."""


class SkippedCheck(ConformanceError):
    """Check was deliberately bypassed."""


class ExpectationLoadError(ConformanceError, ValueError):
    pass


class SchemaConformanceError(AssertionError):
    """Raised when a completed run recorded at least one FAILED check."""

    def __init__(self, message: str, summary: Any = None) -> None:
        super().__init__(message)
        self.summary = summary


def expect(condition: bool, message: str) -> None:
    """Always-enabled check; raises SchemaAssertionError when condition is false."""
    if not condition:
        raise SchemaAssertionError(message)


def skip(reason: str) -> None:
    raise SkippedCheck(reason)


__all__ = [
    "ConformanceError",
    "ConnectivityError",
    "SchemaAssertionError",
    "SkippedCheck",
    "ExpectationLoadError",
    "SchemaConformanceError",
    "expect",
    "skip",
]
