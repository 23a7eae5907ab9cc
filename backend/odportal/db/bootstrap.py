from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import inspect

from odportal.core.config import get_settings
from odportal.db.base import Base
from odportal.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "registration_number", "year", "department", "section"},
    "od_requests": {
        "id",
        "student_user_id",
        "student_year",
        "student_department",
        "student_section",
        "date",
        "from_period",
        "to_period",
        "proof_document_path",
        "status",
    },
    "activity_logs": {"id", "action", "entity_id", "details"},
}

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


def ensure_storage_root() -> None:
    settings = get_settings()
    if settings.storage_backend != "local":
        return
    root = Path(settings.storage_root) / settings.storage_bucket
    root.mkdir(parents=True, exist_ok=True)


def ensure_runtime_schema_compatibility() -> None:
    settings = get_settings()
    try:
        if settings.auto_create_schema:
            Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
