from sqlalchemy import exc as sa_exc

from orderdesk.core.errors import (
    IntegrityViolation,
    NotFoundError,
    PersistenceError,
    StorageError,
    StoreConnectionError,
    translate_error,
)


class FakeDriverError(Exception):
    pass


def _dbapi(error_class, message, **kwargs):
    return error_class("INSERT INTO orders ...", {}, FakeDriverError(message), **kwargs)


def test_integrity_error_becomes_integrity_violation_with_context():
    translated = translate_error(
        _dbapi(sa_exc.IntegrityError, "FOREIGN KEY constraint failed"),
        "orders.add",
        "insert order",
    )

    assert isinstance(translated, IntegrityViolation)
    assert isinstance(translated, StorageError)
    assert translated.operation == "orders.add"
    assert translated.step == "insert order"
    assert str(translated) == "orders.add [insert order]: integrity violation: FOREIGN KEY constraint failed"


def test_invalidated_connection_becomes_store_connection_error():
    translated = translate_error(
        _dbapi(sa_exc.OperationalError, "server closed the connection", connection_invalidated=True),
        "customers.get_all",
    )

    assert isinstance(translated, StoreConnectionError)
    assert isinstance(translated, ConnectionError)


def test_interface_and_disconnection_errors_are_connection_failures():
    assert isinstance(translate_error(_dbapi(sa_exc.InterfaceError, "closed")), StoreConnectionError)
    assert isinstance(translate_error(sa_exc.DisconnectionError("gone")), StoreConnectionError)


def test_operational_error_on_live_connection_is_a_storage_error():
    translated = translate_error(_dbapi(sa_exc.OperationalError, "no such table: orders"), "orders.get_all")

    assert type(translated) is StorageError
    assert str(translated) == "orders.get_all: no such table: orders"


def test_persistence_errors_pass_through_unchanged():
    error = NotFoundError("orders.update [update order]: no rows affected", operation="orders.update")

    assert translate_error(error) is error
    assert isinstance(error, LookupError)
    assert isinstance(error, PersistenceError)
