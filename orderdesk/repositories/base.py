from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import Table, bindparam, insert, or_, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import ColumnElement

from orderdesk.core.database import ConnectionProvider, get_connection_provider
from orderdesk.core.errors import StorageError, describe, translate_error
from orderdesk.core.transactions import Step, TransactionCoordinator, TransactionResult
from orderdesk.models.order import Order
from orderdesk.schemas.entities import OrderSummary

logger = logging.getLogger(__name__)

orders = Order.__table__


def like_pattern(keyword: str) -> str:
    return f"%{keyword}%"


class EntityRepository:
    """Plumbing shared by the single-table repositories."""

    entity_name = "entity"
    table: Table
    search_columns: Sequence[str] = ("name",)

    def __init__(
        self,
        provider: ConnectionProvider | None = None,
        coordinator: TransactionCoordinator | None = None,
    ) -> None:
        self._provider = provider or get_connection_provider()
        self._coordinator = coordinator or TransactionCoordinator(self._provider)

    def operation(self, action: str) -> str:
        return f"{self.entity_name}.{action}"

    def _fetch(self, statement, action: str) -> List[RowMapping]:
        operation = self.operation(action)
        with self._provider.acquire(operation) as connection:
            try:
                return list(connection.execute(statement).mappings())
            except SQLAlchemyError as exc:
                logger.error("read failed operation=%s error=%s", operation, describe(exc))
                raise translate_error(exc, operation) from exc

    def _write(self, steps: Sequence[Step], action: str) -> TransactionResult:
        return self._coordinator.run(steps, operation=self.operation(action))

    def _keyword_filter(self, keyword: str, case_sensitive: bool) -> ColumnElement:
        pattern = like_pattern(keyword)
        columns = [self.table.c[name] for name in self.search_columns]
        if case_sensitive:
            return or_(*(column.like(pattern) for column in columns))
        return or_(*(column.ilike(pattern) for column in columns))

    def _insert_row(self, values: Mapping[str, Any]) -> int:
        step = Step(
            insert(self.table),
            dict(values),
            label=f"insert {self.table.name}",
            capture="id",
            require_rows=StorageError,
        )
        result = self._write([step], "add")
        logger.info("%s added id=%s", self.entity_name, result.captured["id"])
        return result.captured["id"]

    def _update_row(self, entity_id: int, values: Mapping[str, Any]) -> int:
        statement = (
            update(self.table)
            .where(self.table.c.id == bindparam("target_id"))
            .values({name: bindparam(f"new_{name}") for name in values})
        )
        params: Dict[str, Any] = {f"new_{name}": value for name, value in values.items()}
        params["target_id"] = entity_id
        result = self._write([Step(statement, params, label=f"update {self.table.name}")], "update")
        rowcount = result.rowcounts[0]
        if rowcount == 0:
            logger.info("%s update matched no row id=%s", self.entity_name, entity_id)
        return rowcount


class OrderOwnerRepository(EntityRepository):
    """Customers and deliverymen, read together with the ids of their orders.

    The order list is derived from ``orders`` on every read: one LEFT JOIN,
    rows grouped by primary key, a NULL order id meaning no orders.
    """

    owner_column = ""

    def _build(self, row: RowMapping):
        raise NotImplementedError

    def _select_with_orders(self, where: Optional[ColumnElement] = None, descending: Optional[bool] = None):
        owner = orders.c[self.owner_column]
        statement = select(self.table, orders.c.id.label("order_id")).select_from(
            self.table.outerjoin(orders, owner == self.table.c.id)
        )
        if where is not None:
            statement = statement.where(where)
        if descending is None:
            return statement.order_by(self.table.c.id, orders.c.id)
        name = self.table.c.name.desc() if descending else self.table.c.name.asc()
        return statement.order_by(name, self.table.c.id, orders.c.id)

    def _group(self, rows: Sequence[RowMapping]) -> list:
        grouped: Dict[int, Any] = {}
        for row in rows:
            entity = grouped.get(row["id"])
            if entity is None:
                entity = self._build(row)
                grouped[row["id"]] = entity
            if row["order_id"] is not None:
                entity.orders.append(OrderSummary(id=row["order_id"]))
        return list(grouped.values())

    def get_all(self) -> list:
        return self._group(self._fetch(self._select_with_orders(), "get_all"))

    def get_by_id(self, entity_id: int):
        rows = self._fetch(self._select_with_orders(self.table.c.id == entity_id), "get_by_id")
        found = self._group(rows)
        return found[0] if found else None

    def search(self, keyword: str, descending: bool = False, case_sensitive: bool = True) -> list:
        statement = self._select_with_orders(self._keyword_filter(keyword, case_sensitive), descending)
        return self._group(self._fetch(statement, "search"))
