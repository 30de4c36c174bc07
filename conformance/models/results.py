"""Pydantic models for check outcomes and run summaries."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ValidationStatus(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class CheckKind(str, Enum):
    TABLE = "table"
    COLUMN = "column"
    FOREIGN_KEY = "foreign_key"
    UNIQUE = "unique"
    INDEX = "index"
    CHANGESET = "changeset"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValidationResult(BaseModel):
    """One recorded outcome of a single schema assertion."""

    model_config = ConfigDict(frozen=True)

    component: str
    status: ValidationStatus
    details: str
    check: CheckKind
    table: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)

    def outcome(self) -> Tuple[str, str, str]:
        """Comparable projection without the timestamp."""
        return (self.component, self.status.value, self.details)


class ValidationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int
    passed: int
    failed: int
    skipped: int
    passed_pct: float
    failed_pct: float
    skipped_pct: float
    table_coverage_pct: float
    failures: Tuple[ValidationResult, ...] = ()

    @property
    def successful(self) -> bool:
        return self.failed == 0


__all__ = [
    "ValidationStatus",
    "CheckKind",
    "ValidationResult",
    "ValidationSummary",
]
