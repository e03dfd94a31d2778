from __future__ import annotations

import logging

from sqlalchemy import inspect

from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "departments": {"id", "admin_id", "name"},
    "subjects": {"id", "admin_id", "department", "semester", "hours_per_week", "requires_lab"},
    "faculty": {"id", "admin_id", "department", "subjects", "preferences"},
    "classrooms": {"id", "admin_id", "is_lab"},
    "students": {"id", "admin_id", "department", "semester"},
    "schedules": {"id", "admin_id", "department", "semester", "weekly_schedule", "assignments", "status"},
}


def missing_schema_columns(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_runtime_schema() -> None:
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    with engine.connect() as connection:
        missing_tables, missing_columns = missing_schema_columns(connection)
    if missing_tables or missing_columns:
        logger.warning(
            "Database schema is behind the models (tables=%s, columns=%s); run alembic upgrade head",
            missing_tables,
            missing_columns,
        )
