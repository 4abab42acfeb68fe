from __future__ import annotations

import logging
from contextlib import contextmanager
from threading import Lock
from typing import Any, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base

from orderdesk.core.config import DATABASE_SETTINGS, DatabaseSettings
from orderdesk.core.errors import StoreConnectionError, describe
from orderdesk.core.operation_context import operation_scope

logger = logging.getLogger(__name__)

Base = declarative_base()


def _connect_args(url: URL, settings: DatabaseSettings) -> dict[str, Any]:
    backend = url.get_backend_name()
    if backend == "sqlite":
        return {"timeout": settings.connect_timeout, "check_same_thread": False}
    if backend == "postgresql":
        return {
            "connect_timeout": settings.connect_timeout,
            "options": f"-c statement_timeout={settings.statement_timeout_ms}",
        }
    return {}


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(
    url: str | URL | None = None,
    *,
    settings: DatabaseSettings | None = None,
    **engine_kwargs: Any,
) -> Engine:
    settings = settings or DATABASE_SETTINGS
    target = make_url(url) if url is not None else settings.url
    connect_args = {**_connect_args(target, settings), **engine_kwargs.pop("connect_args", {})}
    engine = create_engine(
        target,
        connect_args=connect_args,
        pool_pre_ping=settings.pool_pre_ping,
        **engine_kwargs,
    )
    if target.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class ConnectionProvider:
    """Hands out one connection per logical operation.

    Connections come from the engine pool and always go back to it, whatever
    way the ``acquire`` block is left. A connection must not be shared by
    concurrent operations.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @property
    def safe_url(self) -> str:
        return self.engine.url.render_as_string(hide_password=True)

    def open(self) -> Connection:
        try:
            return self.engine.connect()
        except SQLAlchemyError as exc:
            logger.error("store unavailable url=%s error=%s", self.safe_url, describe(exc))
            raise StoreConnectionError(f"store unavailable: {describe(exc)}") from exc

    def release(self, connection: Connection | None) -> None:
        if connection is not None and not connection.closed:
            connection.close()

    @contextmanager
    def acquire(self, operation: str | None = None) -> Iterator[Connection]:
        with operation_scope(operation):
            connection = self.open()
            try:
                yield connection
            finally:
                self.release(connection)

    def ping(self) -> None:
        with self.acquire("ping") as connection:
            try:
                connection.exec_driver_sql("SELECT 1")
            except SQLAlchemyError as exc:
                logger.error("store ping failed url=%s error=%s", self.safe_url, describe(exc))
                raise StoreConnectionError(f"store ping failed: {describe(exc)}", operation="ping") from exc

    def dispose(self) -> None:
        self.engine.dispose()


_provider: ConnectionProvider | None = None
_provider_lock = Lock()


def get_connection_provider() -> ConnectionProvider:
    """Process-wide provider built from the environment on first use."""
    global _provider
    with _provider_lock:
        if _provider is None:
            _provider = ConnectionProvider(create_db_engine())
            logger.info("connection provider ready url=%s", _provider.safe_url)
        return _provider


def reset_connection_provider(provider: ConnectionProvider | None = None) -> None:
    global _provider
    with _provider_lock:
        previous, _provider = _provider, provider
    if previous is not None and previous is not provider:
        previous.dispose()
