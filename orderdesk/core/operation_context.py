from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator
from uuid import uuid4


_OPERATION_ID_CTX: ContextVar[str | None] = ContextVar("operation_id", default=None)
_OPERATION_CTX: ContextVar[str | None] = ContextVar("operation", default=None)


def new_operation_id() -> str:
    return uuid4().hex[:12]


@contextmanager
def operation_scope(operation: str | None = None) -> Iterator[str]:
    """Tag log records emitted inside the block with an operation id and name.

    Nested scopes reuse the outer id so one logical operation keeps a single id
    across the connections it acquires.
    """
    operation_id = _OPERATION_ID_CTX.get() or new_operation_id()
    id_token = _OPERATION_ID_CTX.set(operation_id)
    name_token = _OPERATION_CTX.set(operation or _OPERATION_CTX.get())
    try:
        yield operation_id
    finally:
        _OPERATION_CTX.reset(name_token)
        _OPERATION_ID_CTX.reset(id_token)


def get_operation_id() -> str | None:
    return _OPERATION_ID_CTX.get()


def get_operation() -> str | None:
    return _OPERATION_CTX.get()
