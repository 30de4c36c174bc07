"""Map reflected SQLAlchemy column types to semantic categories.

Reflection returns dialect-specific type objects (``BIGINT``, ``VARCHAR``,
``TIMESTAMP WITHOUT TIME ZONE``...). Categories compare them on meaning,
not on spelling.
"""

from __future__ import annotations

from typing import Any, List, Tuple

from sqlalchemy.sql import sqltypes

from conformance.models.expectations import DataTypeCategory

# Order matters: Boolean and Text before their broader parents
_GENERIC: List[Tuple[type, DataTypeCategory]] = [
    (sqltypes.Boolean, DataTypeCategory.BOOLEAN),
    (sqltypes.Integer, DataTypeCategory.INTEGER),
    (sqltypes.Numeric, DataTypeCategory.DECIMAL),
    (sqltypes.Uuid, DataTypeCategory.UUID),
    (sqltypes.Text, DataTypeCategory.TEXT),
    (sqltypes.String, DataTypeCategory.STRING),
    (sqltypes.DateTime, DataTypeCategory.TIMESTAMP),
    (sqltypes.Date, DataTypeCategory.DATE),
    (sqltypes.JSON, DataTypeCategory.JSON),
    (sqltypes._Binary, DataTypeCategory.BINARY),
]

# Fallback on the rendered type name for dialect-specific types that do
# not subclass one of the generic types above
_KEYWORDS: List[Tuple[str, DataTypeCategory]] = [
    ("interval", DataTypeCategory.OTHER),
    ("bool", DataTypeCategory.BOOLEAN),
    ("int", DataTypeCategory.INTEGER),
    ("serial", DataTypeCategory.INTEGER),
    ("numeric", DataTypeCategory.DECIMAL),
    ("decimal", DataTypeCategory.DECIMAL),
    ("double", DataTypeCategory.DECIMAL),
    ("float", DataTypeCategory.DECIMAL),
    ("real", DataTypeCategory.DECIMAL),
    ("uuid", DataTypeCategory.UUID),
    ("clob", DataTypeCategory.TEXT),
    ("text", DataTypeCategory.TEXT),
    ("char", DataTypeCategory.STRING),
    ("timestamp", DataTypeCategory.TIMESTAMP),
    ("datetime", DataTypeCategory.TIMESTAMP),
    ("date", DataTypeCategory.DATE),
    ("json", DataTypeCategory.JSON),
    ("blob", DataTypeCategory.BINARY),
    ("binary", DataTypeCategory.BINARY),
    ("bytea", DataTypeCategory.BINARY),
]


def type_name(sql_type: Any) -> str:
    try:
        return str(sql_type)
    except Exception:  # some dialect types cannot compile without a dialect
        return type(sql_type).__name__.upper()


def categorize(sql_type: Any) -> DataTypeCategory:
    for generic, category in _GENERIC:
        if isinstance(sql_type, generic):
            return category
    name = type_name(sql_type).lower()
    for keyword, category in _KEYWORDS:
        if keyword in name:
            return category
    return DataTypeCategory.OTHER


def compatible(expected: DataTypeCategory, actual: DataTypeCategory) -> bool:
    """True when the reflected category satisfies the expected one.

    STRING and TEXT are interchangeable since engines disagree on whether
    unbounded VARCHAR is text. Unknown reflected types never fail a check.
    """
    if actual == DataTypeCategory.OTHER or expected == actual:
        return True
    textual = {DataTypeCategory.STRING, DataTypeCategory.TEXT}
    return expected in textual and actual in textual


__all__ = ["categorize", "compatible", "type_name"]
