"""Expectation Set sources: the built-in platform schema and JSON documents.

The built-in set describes the learning-platform schema produced by its
changelog (users and authorities, profiles, courses, lessons, quizzes,
notifications, file uploads). It is constructed once per call and is
immutable; callers needing a different ground truth load one from JSON.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from conformance.errors import ExpectationLoadError
from conformance.models.expectations import (
    ChangesetExpectation,
    ColumnExpectation,
    DataTypeCategory as T,
    ExpectationSet,
    ForeignKeyExpectation,
    IndexExpectation,
    TableExpectation,
    UniqueConstraintExpectation,
    foreign_key_column,
    optional,
    primary_key_column,
    required,
)

logger = logging.getLogger(__name__)

CORE_TABLES: Tuple[str, ...] = (
    "jhi_user", "jhi_authority", "jhi_user_authority",
    "user_profile", "student_profile", "teacher_profile",
    "course", "lesson", "quiz", "question", "quiz_question",
    "course_class", "schedule", "student_quiz", "student_quiz_participation",
    "flashcard", "flashcard_session", "social_account",
    "notification_preference", "notification_delivery",
    "file_meta_data", "gift_code",
)

CHANGESETS: Tuple[str, ...] = (
    "20250809000001_add_quiz_scheduling_columns.xml",
    "20250809000002_add_user_session_table.xml",
    "20250809000003_add_missing_entities.xml",
    "20250809000004_add_remaining_entities.xml",
    "20250809000005_add_missing_user_columns.xml",
    "20250811000001_add_file_metadata_table.xml",
)


def _fk(table: str, column: str, to_table: str, name: str | None = None) -> ForeignKeyExpectation:
    return ForeignKeyExpectation(from_table=table, from_column=column, to_table=to_table, to_column="id", name=name)


def _table(
    name: str,
    columns: Sequence[ColumnExpectation] = (),
    foreign_keys: Sequence[ForeignKeyExpectation] = (),
    unique: Sequence[str] = (),
    indexes: Sequence[Tuple[str, str]] = (),
    skippable: bool = False,
) -> TableExpectation:
    # Every platform table carries a surrogate BIGINT id unless columns say otherwise
    cols = list(columns)
    if not any(c.primary_key for c in cols):
        cols.insert(0, primary_key_column("id", T.INTEGER))
    return TableExpectation(
        name=name,
        columns=tuple(cols),
        foreign_keys=tuple(foreign_keys),
        unique_constraints=tuple(UniqueConstraintExpectation(column=c) for c in unique),
        indexes=tuple(IndexExpectation(column=c, name=n) for c, n in indexes),
        skippable=skippable,
    )


def _user_tables() -> List[TableExpectation]:
    return [
        _table(
            "jhi_user",
            columns=[
                required("login", T.STRING),
                optional("email", T.STRING),
                optional("password_hash", T.STRING),
                required("activated", T.BOOLEAN),
                # 20250809000005_add_missing_user_columns
                optional("last_login_date", T.TIMESTAMP),
                optional("failed_login_attempts", T.INTEGER),
                optional("account_locked_until", T.TIMESTAMP),
                optional("profile_completed", T.BOOLEAN),
                optional("timezone", T.STRING),
                optional("oauth2_registration", T.BOOLEAN),
                optional("profile_picture_url", T.STRING),
                optional("external_profile_synced_at", T.TIMESTAMP),
            ],
            unique=["login"],
        ),
        _table("jhi_authority", columns=[primary_key_column("name", T.STRING)]),
        _table(
            "jhi_user_authority",
            columns=[
                primary_key_column("user_id", T.INTEGER),
                primary_key_column("authority_name", T.STRING),
            ],
            foreign_keys=[
                _fk("jhi_user_authority", "user_id", "jhi_user"),
                ForeignKeyExpectation(
                    from_table="jhi_user_authority", from_column="authority_name",
                    to_table="jhi_authority", to_column="name",
                ),
            ],
        ),
        _table(
            "user_profile",
            columns=[
                required("username", T.STRING),
                required("password_hash", T.STRING),
                required("email", T.STRING),
                required("full_name", T.STRING),
                optional("gender", T.STRING),
                required("role", T.STRING),
            ],
        ),
        _table("student_profile", foreign_keys=[_fk("student_profile", "user_profile_id", "user_profile")]),
        _table("teacher_profile", foreign_keys=[_fk("teacher_profile", "user_profile_id", "user_profile")]),
        _table("social_account"),
    ]


def _course_tables() -> List[TableExpectation]:
    return [
        _table(
            "course",
            columns=[
                required("title", T.STRING),
                optional("description", T.STRING),
                optional("course_code", T.STRING),
                optional("price", T.DECIMAL),
                optional("is_active", T.BOOLEAN),
                required("created_date", T.TIMESTAMP),
            ],
            unique=["course_code"],
        ),
        _table(
            "lesson",
            columns=[
                required("title", T.STRING),
                optional("content", T.TEXT),
                optional("video_url", T.STRING),
                optional("order_index", T.INTEGER),
                foreign_key_column("course_id", T.INTEGER),
            ],
            foreign_keys=[_fk("lesson", "course_id", "course")],
        ),
        _table(
            "course_class",
            columns=[
                required("code", T.STRING),
                required("name", T.STRING),
                required("start_date", T.DATE),
                required("end_date", T.DATE),
                optional("capacity", T.INTEGER),
            ],
            unique=["code"],
        ),
        _table(
            "schedule",
            columns=[
                required("start_time", T.TIMESTAMP),
                required("end_time", T.TIMESTAMP),
                optional("location", T.STRING),
            ],
        ),
        _table("flashcard"),
        _table(
            "flashcard_session",
            columns=[required("session_date", T.DATE), optional("cards_studied", T.INTEGER)],
        ),
        _table("gift_code", columns=[required("code", T.STRING)], unique=["code"]),
    ]


def _quiz_tables() -> List[TableExpectation]:
    return [
        _table(
            "quiz",
            columns=[
                required("title", T.STRING),
                # 20250809000001_add_quiz_scheduling_columns
                optional("is_active", T.BOOLEAN),
                optional("activation_time", T.TIMESTAMP),
                optional("deactivation_time", T.TIMESTAMP),
                optional("time_limit_minutes", T.INTEGER),
                optional("is_template", T.BOOLEAN),
                optional("template_name", T.STRING),
            ],
        ),
        _table(
            "question",
            columns=[required("content", T.TEXT), required("correct_answer", T.STRING), required("type", T.STRING)],
        ),
        _table(
            "quiz_question",
            foreign_keys=[_fk("quiz_question", "quiz_id", "quiz"), _fk("quiz_question", "question_id", "question")],
        ),
        _table(
            "student_quiz",
            columns=[optional("score", T.DECIMAL), optional("completed", T.BOOLEAN)],
        ),
        _table("student_quiz_participation"),
    ]


def _notification_and_file_tables() -> List[TableExpectation]:
    return [
        _table("notification_preference"),
        _table(
            "notification_delivery",
            columns=[
                required("recipient_id", T.INTEGER),
                required("recipient_email", T.STRING),
                required("notification_type", T.STRING),
                required("delivery_channel", T.STRING),
                required("status", T.STRING),
                optional("sent_at", T.TIMESTAMP),
            ],
        ),
        _table(
            "file_meta_data",
            columns=[
                required("file_name", T.STRING),
                required("original_name", T.STRING),
                required("file_path", T.STRING),
                optional("file_type", T.STRING),
                optional("file_size", T.INTEGER),
                optional("mime_type", T.STRING),
                optional("upload_date", T.TIMESTAMP),
                optional("version", T.INTEGER),
                optional("checksum", T.STRING),
                optional("folder_path", T.STRING),
                optional("description", T.TEXT),
                optional("is_public", T.BOOLEAN),
                optional("download_count", T.INTEGER),
                optional("last_accessed_date", T.TIMESTAMP),
                foreign_key_column("lesson_id", T.INTEGER),
                foreign_key_column("uploaded_by_id", T.INTEGER),
            ],
            foreign_keys=[
                _fk("file_meta_data", "lesson_id", "lesson", "fk_file_meta_data_lesson_id"),
                _fk("file_meta_data", "uploaded_by_id", "user_profile", "fk_file_meta_data_uploaded_by_id"),
            ],
            indexes=[
                ("checksum", "idx_file_meta_data_checksum"),
                ("folder_path", "idx_file_meta_data_folder_path"),
                ("mime_type", "idx_file_meta_data_mime_type"),
                ("upload_date", "idx_file_meta_data_upload_date"),
            ],
        ),
        # Only present when the AI assistant feature is enabled
        _table("spring_ai", skippable=True),
    ]


def default_expectation_set(include_changesets: bool = True) -> ExpectationSet:
    tables = _user_tables() + _course_tables() + _quiz_tables() + _notification_and_file_tables()
    order = {name: i for i, name in enumerate(CORE_TABLES)}
    tables.sort(key=lambda t: order.get(t.name, len(order)))
    changesets = tuple(ChangesetExpectation(filename=f) for f in CHANGESETS) if include_changesets else ()
    return ExpectationSet(tables=tuple(tables), changesets=changesets)


def load_expectation_set(path: str | Path) -> ExpectationSet:
    """Parse a JSON document into an ExpectationSet.

    The document mirrors the model: ``{"tables": [{"name": ..., "columns":
    [{"name": ..., "category": "integer", "nullable": false,
    "primary_key": true}], "foreign_keys": [...], ...}], "changesets":
    [{"filename": ...}]}``.
    """
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.error("expectations_unreadable path=%s error=%s", p, exc)
        raise ExpectationLoadError(f"Cannot read expectation document {p}: {exc}") from exc
    try:
        return ExpectationSet.model_validate(raw)
    except PydanticValidationError as exc:
        logger.error("expectations_invalid path=%s errors=%d", p, exc.error_count())
        raise ExpectationLoadError(f"Invalid expectation document {p}: {exc}") from exc


__all__ = [
    "CORE_TABLES",
    "CHANGESETS",
    "default_expectation_set",
    "load_expectation_set",
]
