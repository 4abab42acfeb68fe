from __future__ import annotations

import logging
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import inspect
from sqlalchemy.engine import Connection, Engine, Inspector

from orderdesk.core import config
from orderdesk.core.database import Base
from orderdesk.core.errors import StorageError
import orderdesk.models  # noqa: F401

logger = logging.getLogger(__name__)
SCHEMA_PREFIX = "[SCHEMA]"


def validate_database_environment() -> None:
    if config.IS_PROD and config.DATABASE_SETTINGS.is_sqlite:
        logger.critical("%s SQLite is forbidden in production", SCHEMA_PREFIX)
        raise RuntimeError("SQLite is forbidden in production environment")


def _script_heads(alembic_config_path: Path) -> set[str]:
    if not alembic_config_path.exists():
        logger.critical("%s alembic config not found path=%s", SCHEMA_PREFIX, alembic_config_path)
        raise RuntimeError("alembic config not found")
    scripts = ScriptDirectory.from_config(Config(str(alembic_config_path)))
    return set(scripts.get_heads())


def _table_problems(inspector: Inspector, existing_tables: set[str]) -> list[str]:
    problems: list[str] = []
    for table in Base.metadata.sorted_tables:
        if table.name not in existing_tables:
            problems.append(f"missing table {table.name}")
            continue
        existing_columns = {column["name"] for column in inspector.get_columns(table.name)}
        problems.extend(
            f"missing column {table.name}.{column.name}"
            for column in table.columns
            if column.name not in existing_columns
        )
    return problems


def _revision_problems(connection: Connection, existing_tables: set[str], heads: set[str]) -> list[str]:
    if "alembic_version" not in existing_tables:
        return ["no migration state (alembic_version missing)"]
    stamped = {row[0] for row in connection.exec_driver_sql("SELECT version_num FROM alembic_version") if row[0]}
    if stamped != heads:
        return [f"pending migrations stamped={sorted(stamped)} heads={sorted(heads)}"]
    return []


def ensure_schema(engine: Engine, alembic_config_path: Path | None = None) -> None:
    """Fail fast when the store does not match what the repositories expect.

    Every table and column of the declarative metadata must exist. When an
    Alembic config is given (and ENV is not ``test``), the stamped revision
    must also equal the script heads. All problems are reported together.
    """
    heads = None
    if alembic_config_path is not None and not config.IS_TEST:
        heads = _script_heads(alembic_config_path)

    with engine.connect() as connection:
        inspector = inspect(connection)
        existing_tables = set(inspector.get_table_names())
        problems = _table_problems(inspector, existing_tables)
        if heads is not None:
            problems.extend(_revision_problems(connection, existing_tables, heads))

    if problems:
        logger.critical("%s store check failed problems=%s", SCHEMA_PREFIX, problems)
        raise StorageError("store check failed: " + ", ".join(problems), operation="ensure_schema")
    logger.info("%s store verified revision_checked=%s", SCHEMA_PREFIX, heads is not None)
