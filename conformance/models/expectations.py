"""Pydantic models for the declared (expected) schema.

All models are frozen: an Expectation Set is populated once and never
mutated. Identifier lookups are case-insensitive because engines differ in
how they fold unquoted names.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DataTypeCategory(str, Enum):
    INTEGER = "integer"
    DECIMAL = "decimal"
    STRING = "string"
    TEXT = "text"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    DATE = "date"
    BINARY = "binary"
    JSON = "json"
    UUID = "uuid"
    OTHER = "other"


def _identifier(v: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError("identifier must be a non-empty string")
    return v.strip()


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ColumnExpectation(_Frozen):
    name: str
    category: DataTypeCategory
    nullable: bool = True
    primary_key: bool = False

    @field_validator("name")
    @classmethod
    def name_must_be_identifier(cls, v: str) -> str:
        return _identifier(v)


def primary_key_column(name: str, category: DataTypeCategory) -> ColumnExpectation:
    return ColumnExpectation(name=name, category=category, nullable=False, primary_key=True)


def required(name: str, category: DataTypeCategory) -> ColumnExpectation:
    return ColumnExpectation(name=name, category=category, nullable=False)


def optional(name: str, category: DataTypeCategory) -> ColumnExpectation:
    return ColumnExpectation(name=name, category=category, nullable=True)


def foreign_key_column(name: str, category: DataTypeCategory) -> ColumnExpectation:
    return ColumnExpectation(name=name, category=category, nullable=True)


class ForeignKeyExpectation(_Frozen):
    from_table: str
    from_column: str
    to_table: str
    to_column: str
    name: Optional[str] = None

    @field_validator("from_table", "from_column", "to_table", "to_column")
    @classmethod
    def names_must_be_identifiers(cls, v: str) -> str:
        return _identifier(v)

    def describe(self) -> str:
        return f"{self.from_table}.{self.from_column} -> {self.to_table}.{self.to_column}"


class UniqueConstraintExpectation(_Frozen):
    column: str
    name: Optional[str] = None

    @field_validator("column")
    @classmethod
    def column_must_be_identifier(cls, v: str) -> str:
        return _identifier(v)


class IndexExpectation(_Frozen):
    column: str
    # Informational only; matching is by column
    name: Optional[str] = None

    @field_validator("column")
    @classmethod
    def column_must_be_identifier(cls, v: str) -> str:
        return _identifier(v)


class ChangesetExpectation(_Frozen):
    filename: str

    @field_validator("filename")
    @classmethod
    def filename_must_be_non_empty(cls, v: str) -> str:
        return _identifier(v)


class TableExpectation(_Frozen):
    name: str
    columns: Tuple[ColumnExpectation, ...] = ()
    foreign_keys: Tuple[ForeignKeyExpectation, ...] = ()
    unique_constraints: Tuple[UniqueConstraintExpectation, ...] = ()
    indexes: Tuple[IndexExpectation, ...] = ()
    skippable: bool = False

    @field_validator("name")
    @classmethod
    def name_must_be_identifier(cls, v: str) -> str:
        return _identifier(v)

    @model_validator(mode="after")
    def foreign_keys_belong_to_table(self) -> "TableExpectation":
        for fk in self.foreign_keys:
            if fk.from_table.lower() != self.name.lower():
                raise ValueError(
                    f"foreign key {fk.describe()} declared on table {self.name}"
                )
        return self

    def column(self, name: str) -> Optional[ColumnExpectation]:
        wanted = name.lower()
        for col in self.columns:
            if col.name.lower() == wanted:
                return col
        return None


class ExpectationSet(_Frozen):
    tables: Tuple[TableExpectation, ...] = ()
    changesets: Tuple[ChangesetExpectation, ...] = Field(default=())

    @model_validator(mode="after")
    def table_names_are_unique(self) -> "ExpectationSet":
        seen: Dict[str, str] = {}
        for table in self.tables:
            key = table.name.lower()
            if key in seen:
                raise ValueError(f"duplicate table expectation: {table.name}")
            seen[key] = table.name
        return self

    def table(self, name: str) -> Optional[TableExpectation]:
        wanted = name.lower()
        for table in self.tables:
            if table.name.lower() == wanted:
                return table
        return None

    @property
    def table_names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.tables)


__all__ = [
    "DataTypeCategory",
    "ColumnExpectation",
    "ForeignKeyExpectation",
    "UniqueConstraintExpectation",
    "IndexExpectation",
    "ChangesetExpectation",
    "TableExpectation",
    "ExpectationSet",
    "primary_key_column",
    "required",
    "optional",
    "foreign_key_column",
]
