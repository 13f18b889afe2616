from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

import schoolplan.models  # noqa: F401
from schoolplan.db.base import Base
from schoolplan.db.session import engine as default_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "school_classes": {"id", "institution_id", "level_label"},
    "rooms": {"id", "institution_id", "status"},
    "subjects": {"id", "institution_id", "level"},
    "teachers": {"id", "institution_id", "max_weekly_hours"},
    "teacher_assignments": {"id", "teacher_id", "class_id", "subject_id", "mode"},
    "schedule_entries": {"id", "class_id", "teacher_id", "room_id", "day_of_week", "start_time", "end_time"},
    "schedule_day_versions": {"institution_id", "day_of_week", "version"},
}


def missing_schema(bind: Engine) -> tuple[list[str], dict[str, list[str]]]:
    with bind.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
        missing_columns: dict[str, list[str]] = {}
        for table_name, required in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(required - existing)
            if missing:
                missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_schema(bind: Engine | None = None) -> None:
    bind = bind or default_engine
    try:
        # Development databases get missing tables; production schemas come from Alembic.
        Base.metadata.create_all(bind=bind)
        missing_tables, missing_columns = missing_schema(bind)
    except Exception as exc:
        logger.exception("Schema bootstrap failed")
        raise RuntimeError("Schema bootstrap failed") from exc
    if missing_tables or missing_columns:
        details = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Database schema is out of date: {', '.join(missing_tables + details)}")
