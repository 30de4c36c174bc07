"""Schema conformance checks for relational databases.

Reads live metadata (tables, columns, foreign keys, unique constraints,
indexes) through SQLAlchemy reflection and compares it with a declared
Expectation Set. Results are plain records; aggregation and console output
live in `conformance.logic.reporter`.
"""

from __future__ import annotations

from conformance.runner import assert_schema_conforms, check_schema

__all__ = ["check_schema", "assert_schema_conforms"]
