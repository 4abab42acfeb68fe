from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type, Union

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.base import Executable

from orderdesk.core.database import ConnectionProvider, get_connection_provider
from orderdesk.core.errors import PersistenceError, StorageError, describe, translate_error

logger = logging.getLogger(__name__)

Params = Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None]
ParamsFactory = Callable[[Mapping[str, Any]], Params]


@dataclass(frozen=True)
class Step:
    """One parameterized statement of a transaction.

    ``params`` may be a mapping, a list of mappings (run as executemany, skipped
    when empty) or a callable that receives the values captured so far and
    returns either. ``capture`` stores the generated primary key under that
    name. When ``require_rows`` is set, a step that touches no row aborts the
    transaction with that error type.
    """

    statement: Executable
    params: Union[Params, ParamsFactory] = None
    label: str = ""
    capture: Optional[str] = None
    require_rows: Optional[Type[PersistenceError]] = None


@dataclass
class TransactionResult:
    rowcounts: List[int] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    captured: Dict[str, Any] = field(default_factory=dict)

    def rowcount(self, label: str) -> int:
        return self.rowcounts[self.labels.index(label)]


class TransactionCoordinator:
    """Runs an ordered list of statements as one all-or-nothing unit."""

    def __init__(self, provider: ConnectionProvider | None = None) -> None:
        self._provider = provider or get_connection_provider()

    def run(self, steps: Sequence[Step], *, operation: str) -> TransactionResult:
        result = TransactionResult()
        started = time.perf_counter()
        with self._provider.acquire(operation) as connection:
            transaction = connection.begin()
            label = None
            try:
                for index, step in enumerate(steps):
                    label = step.label or f"step-{index + 1}"
                    rowcount = self._run_step(connection, step, label, result.captured, operation)
                    result.rowcounts.append(rowcount)
                    result.labels.append(label)
                transaction.commit()
            except Exception as exc:
                self._rollback(transaction, operation, label)
                logger.error(
                    "transaction failed operation=%s step=%s error=%s",
                    operation,
                    label,
                    describe(exc),
                    extra={"step": label},
                )
                if isinstance(exc, SQLAlchemyError):
                    raise translate_error(exc, operation, label) from exc
                raise

        logger.info(
            "transaction committed operation=%s steps=%s",
            operation,
            len(result.labels),
            extra={
                "steps": len(result.labels),
                "rowcount": sum(count for count in result.rowcounts if count > 0),
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return result

    def _run_step(
        self,
        connection: Connection,
        step: Step,
        label: str,
        captured: Dict[str, Any],
        operation: str,
    ) -> int:
        params = step.params(captured) if callable(step.params) else step.params

        if isinstance(params, (list, tuple)):
            if not params:
                return 0
            cursor = connection.execute(step.statement, list(params))
        elif params is None:
            cursor = connection.execute(step.statement)
        else:
            cursor = connection.execute(step.statement, params)

        rowcount = cursor.rowcount
        if step.require_rows is not None and rowcount == 0:
            raise step.require_rows(
                f"{operation} [{label}]: no rows affected",
                operation=operation,
                step=label,
            )

        if step.capture:
            primary_key = cursor.inserted_primary_key
            if not primary_key or primary_key[0] is None:
                raise StorageError(
                    f"{operation} [{label}]: no generated id returned",
                    operation=operation,
                    step=label,
                )
            captured[step.capture] = primary_key[0]

        logger.debug("step done operation=%s step=%s rowcount=%s", operation, label, rowcount)
        return rowcount

    def _rollback(self, transaction, operation: str, label: str | None) -> None:
        if not transaction.is_active:
            return
        try:
            transaction.rollback()
        except SQLAlchemyError:
            logger.exception("rollback failed operation=%s step=%s", operation, label)
            return
        logger.warning("transaction rolled back operation=%s step=%s", operation, label, extra={"step": label})
