"""Configuration utilities for conformance runs.

This module loads configuration with the following rules:
- Primary source: `conformance_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFORMANCE_CONFIG = Path("conformance_config.json")
DEFAULT_CHANGELOG_TABLE = "databasechangelog"
logger = logging.getLogger(__name__)

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: an unreadable override falls through to the next source
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str
    schema_name: Optional[str] = None

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class ChecksConfig(BaseModel):
    expectations_path: Optional[Path] = None
    changelog_table: str = Field(default=DEFAULT_CHANGELOG_TABLE, min_length=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def level_must_be_known(cls, v: str) -> str:
        upper = str(v).strip().upper()
        if upper not in _LEVELS:
            raise ValueError(f"logging.level must be one of {sorted(_LEVELS)}")
        return upper


class AppConfig(BaseModel):
    database: DatabaseConfig
    checks: ChecksConfig
    logging: LoggingConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) conformance_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFORMANCE_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    # Database
    # TEST_DATABASE_URL first, matching get_engine() without a URL
    dsn = _env("TEST_DATABASE_URL") or _env("DATABASE_URL") or _read_config_file("database.url") or _base("database.dsn") or "sqlite+pysqlite:///:memory:"
    schema_name = _env("DATABASE_SCHEMA") or _read_config_file("database.schema") or _base("database.schema")

    # Checks
    expectations_text = _env("CONFORMANCE_EXPECTATIONS") or _read_config_file("checks.expectations") or _base("checks.expectations_path")
    changelog_table = (
        _env("CONFORMANCE_CHANGELOG_TABLE")
        or _read_config_file("checks.changelog_table")
        or _base("checks.changelog_table", DEFAULT_CHANGELOG_TABLE)
    )

    # Logging
    level = _env("CONFORMANCE_LOG_LEVEL") or _read_config_file("logging.level") or _base("logging.level", "INFO")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn, schema_name=schema_name or None),
            checks=ChecksConfig(
                expectations_path=Path(expectations_text.strip()) if expectations_text else None,
                changelog_table=str(changelog_table).strip(),
            ),
            logging=LoggingConfig(level=str(level)),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid conformance configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "ChecksConfig",
    "LoggingConfig",
    "DEFAULT_CHANGELOG_TABLE",
    "load_config",
]
