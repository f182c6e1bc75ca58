from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from classplanner.db.base import Base
import classplanner.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "students": {"id", "name", "gender"},
    "subjects": {"id", "name", "color"},
    "enrollments": {"id", "student_id", "subject_id"},
    "class_sessions": {"id", "weekday", "starts_at", "ends_at", "room", "y_position"},
    "class_session_enrollments": {"session_id", "enrollment_id"},
}


def _resolve_engine(engine: Engine | None) -> Engine:
    if engine is not None:
        return engine
    from classplanner.db.session import engine as default_engine

    return default_engine


def _assert_required_columns(engine: Engine) -> None:
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


def ensure_schema(engine: Engine | None = None) -> None:
    """Create missing tables and verify the columns the services rely on."""
    engine = _resolve_engine(engine)
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns(engine)
    except Exception as exc:
        logger.exception("Schema bootstrap failed")
        raise RuntimeError("Schema bootstrap failed") from exc
