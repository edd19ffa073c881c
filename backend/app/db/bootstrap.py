from __future__ import annotations

import logging

from sqlalchemy import inspect, text

import app.models  # noqa: F401  registers every table on Base.metadata
from app.core.config import get_settings
from app.db.base import Base
from app.db.session import engine
from app.services.storage import FileStorage

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "event_id"},
    "events": {"id", "name", "start_date", "end_date", "created_by_id"},
    "rooms": {"id", "name"},
    "conference_sessions": {
        "id",
        "faculty_id",
        "room_id",
        "start_time",
        "end_time",
        "invite_status",
        "travel_status",
        "poster_path",
    },
    "cv_uploads": {"id", "faculty_id", "file_path", "session_metadata_id"},
    "presentations": {"id", "user_id", "session_id", "file_path"},
}

# Columns added after the first release: (table, column, DDL type).
ADDITIVE_COLUMNS: list[tuple[str, str, str]] = [
    ("users", "event_id", "VARCHAR(64)"),
    ("users", "designation", "VARCHAR(200)"),
    ("conference_sessions", "poster_path", "VARCHAR(500)"),
    ("conference_sessions", "optional_query", "TEXT"),
    ("cv_uploads", "session_metadata_id", "VARCHAR(64)"),
]


def _ensure_travel_status_column() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "conference_sessions" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("conference_sessions")}
        if "travel_status" in column_names:
            return
        if connection.dialect.name == "postgresql":
            connection.execute(
                text(
                    "ALTER TABLE conference_sessions "
                    "ADD COLUMN travel_status travel_status NOT NULL DEFAULT 'pending'"
                )
            )
            return
        connection.execute(
            text("ALTER TABLE conference_sessions ADD COLUMN travel_status VARCHAR(12) NOT NULL DEFAULT 'pending'")
        )


def _ensure_additive_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        for table_name, column_name, ddl_type in ADDITIVE_COLUMNS:
            if table_name not in table_names:
                continue
            column_names = {item["name"] for item in inspector.get_columns(table_name)}
            if column_name in column_names:
                continue
            logger.info("Adding column %s.%s", table_name, column_name)
            connection.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {ddl_type}"))


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Create missing tables first so the additive patches only touch older ones.
        Base.metadata.create_all(bind=engine)
        _ensure_travel_status_column()
        _ensure_additive_columns()
        _assert_required_columns()
        FileStorage(get_settings().upload_root).ensure_directories()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
