from __future__ import annotations

from sqlalchemy import exc as sa_exc


class PersistenceError(Exception):
    """Base class for every failure raised by the persistence layer."""

    def __init__(self, message: str, *, operation: str | None = None, step: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.step = step


class StoreConnectionError(PersistenceError, ConnectionError):
    """The store is unreachable, refused the credentials or dropped the connection."""


class StorageError(PersistenceError):
    """A statement failed to execute."""


class IntegrityViolation(StorageError):
    """A write broke a constraint of the store (foreign key, not null)."""


class NotFoundError(PersistenceError, LookupError):
    """An operation needed a row that does not exist."""


_CONNECTION_ERRORS = (sa_exc.InterfaceError, sa_exc.DisconnectionError)


def describe(exc: BaseException) -> str:
    source = getattr(exc, "orig", None) or exc
    text = str(source).strip()
    return text.splitlines()[0] if text else type(source).__name__


def translate_error(exc: BaseException, operation: str | None = None, step: str | None = None) -> PersistenceError:
    if isinstance(exc, PersistenceError):
        return exc

    detail = describe(exc)
    where = operation or "database"
    if step:
        where = f"{where} [{step}]"

    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return StoreConnectionError(f"{where}: connection lost: {detail}", operation=operation, step=step)
    if isinstance(exc, _CONNECTION_ERRORS):
        return StoreConnectionError(f"{where}: store unavailable: {detail}", operation=operation, step=step)
    if isinstance(exc, sa_exc.IntegrityError):
        return IntegrityViolation(f"{where}: integrity violation: {detail}", operation=operation, step=step)
    return StorageError(f"{where}: {detail}", operation=operation, step=step)
