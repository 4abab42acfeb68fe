from pathlib import Path

import pytest
from sqlalchemy.pool import StaticPool

from orderdesk.core import config, startup_checks
from orderdesk.core.config import load_database_settings
from orderdesk.core.database import Base, create_db_engine
from orderdesk.core.errors import StorageError
from orderdesk.models.order_item import order_item

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def _engine():
    engine = create_db_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    return engine


def _stamp(engine, revision):
    with engine.begin() as connection:
        connection.exec_driver_sql("CREATE TABLE alembic_version (version_num VARCHAR(32) NOT NULL)")
        connection.exec_driver_sql(f"INSERT INTO alembic_version (version_num) VALUES ('{revision}')")


def test_ensure_schema_accepts_a_complete_store():
    startup_checks.ensure_schema(_engine())


def test_ensure_schema_lists_missing_tables():
    engine = _engine()
    order_item.drop(engine)

    with pytest.raises(StorageError, match="missing table order_item"):
        startup_checks.ensure_schema(engine)


def test_sqlite_is_refused_in_production(monkeypatch):
    monkeypatch.setattr(config, "IS_PROD", True)
    monkeypatch.setattr(config, "DATABASE_SETTINGS", load_database_settings({"DATABASE_URL": "sqlite:///orders.db"}))

    with pytest.raises(RuntimeError):
        startup_checks.validate_database_environment()


def test_server_store_is_allowed_in_production(monkeypatch):
    monkeypatch.setattr(config, "IS_PROD", True)
    monkeypatch.setattr(config, "DATABASE_SETTINGS", load_database_settings({"DB_HOST": "db"}))

    startup_checks.validate_database_environment()
    assert not config.DATABASE_SETTINGS.is_sqlite


def test_revision_check_is_skipped_in_tests(monkeypatch):
    monkeypatch.setattr(config, "IS_TEST", True)

    startup_checks.ensure_schema(_engine(), ALEMBIC_INI)


def test_revision_check_requires_version_table(monkeypatch):
    monkeypatch.setattr(config, "IS_TEST", False)

    with pytest.raises(StorageError, match="no migration state"):
        startup_checks.ensure_schema(_engine(), ALEMBIC_INI)


def test_revision_check_passes_at_head(monkeypatch):
    monkeypatch.setattr(config, "IS_TEST", False)
    engine = _engine()
    _stamp(engine, "0001_create_schema")

    startup_checks.ensure_schema(engine, ALEMBIC_INI)


def test_revision_check_detects_pending_revisions(monkeypatch):
    monkeypatch.setattr(config, "IS_TEST", False)
    engine = _engine()
    _stamp(engine, "0000_previous")

    with pytest.raises(StorageError, match="pending migrations"):
        startup_checks.ensure_schema(engine, ALEMBIC_INI)


def test_schema_and_revision_problems_are_reported_together(monkeypatch):
    monkeypatch.setattr(config, "IS_TEST", False)
    engine = _engine()
    order_item.drop(engine)

    with pytest.raises(StorageError) as exc:
        startup_checks.ensure_schema(engine, ALEMBIC_INI)

    assert "missing table order_item" in str(exc.value)
    assert "no migration state" in str(exc.value)
    assert exc.value.operation == "ensure_schema"


def test_revision_check_requires_config_file(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "IS_TEST", False)

    with pytest.raises(RuntimeError):
        startup_checks.ensure_schema(_engine(), tmp_path / "alembic.ini")
