"""Database utilities for conformance runs.

Exposes engine construction, scoped connections, the metadata reader and a
SQL migrations runner used to build fixture schemas. No ORM models are
defined; all structure is read back through reflection.
"""

from conformance.db.base import dispose_engine, get_engine, scoped_connection
from conformance.db.metadata_reader import MetadataReader
from conformance.db.migrations_runner import applied_migrations, apply_migrations

__all__ = [
    "get_engine",
    "dispose_engine",
    "scoped_connection",
    "MetadataReader",
    "apply_migrations",
    "applied_migrations",
]
