from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import ColumnElement

from orderdesk.core.database import ConnectionProvider, get_connection_provider
from orderdesk.core.errors import describe, translate_error
from orderdesk.models.order_item import order_item
from orderdesk.repositories.base import orders
from orderdesk.repositories.customers import CustomerRepository
from orderdesk.repositories.deliverymen import DeliverymanRepository
from orderdesk.repositories.items import ItemRepository
from orderdesk.schemas.entities import CustomerRead, DeliverymanRead, ItemRead, OrderRead

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _OrderRows:
    id: int
    total_price: Decimal
    date: date
    customer_id: int
    deliveryman_id: Optional[int]
    item_ids: List[int] = field(default_factory=list)


class OrderHydrator:
    """Rebuilds Order aggregates from ``orders LEFT JOIN order_item``.

    Rows are folded into one entry per order id (header fields from the first
    row seen, every non-NULL item id appended). Referenced items, customers and
    deliverymen are then resolved through their repositories, each id at most
    once per pass. Nothing is written.
    """

    def __init__(
        self,
        provider: ConnectionProvider | None = None,
        customers: CustomerRepository | None = None,
        deliverymen: DeliverymanRepository | None = None,
        items: ItemRepository | None = None,
    ) -> None:
        self._provider = provider or get_connection_provider()
        self._customers = customers or CustomerRepository(self._provider)
        self._deliverymen = deliverymen or DeliverymanRepository(self._provider)
        self._items = items or ItemRepository(self._provider)

    def hydrate(self, where: Optional[ColumnElement] = None, operation: str = "orders.hydrate") -> List[OrderRead]:
        accumulated = self._accumulate(where, operation)

        item_cache: Dict[int, Optional[ItemRead]] = {}
        customer_cache: Dict[int, Optional[CustomerRead]] = {}
        deliveryman_cache: Dict[int, Optional[DeliverymanRead]] = {}

        hydrated: List[OrderRead] = []
        for entry in accumulated.values():
            order_items = []
            for item_id in entry.item_ids:
                item = self._resolve(item_cache, item_id, self._items.get_by_id)
                if item is None:
                    logger.warning("order %s references missing item %s; skipped", entry.id, item_id)
                    continue
                order_items.append(item)

            customer = self._resolve(customer_cache, entry.customer_id, self._customers.get_by_id)
            if customer is None:
                logger.warning("order %s references missing customer %s", entry.id, entry.customer_id)

            deliveryman = None
            if entry.deliveryman_id is not None:
                deliveryman = self._resolve(deliveryman_cache, entry.deliveryman_id, self._deliverymen.get_by_id)
                if deliveryman is None:
                    logger.warning("order %s references missing deliveryman %s", entry.id, entry.deliveryman_id)

            hydrated.append(
                OrderRead(
                    id=entry.id,
                    total_price=entry.total_price,
                    date=entry.date,
                    customer=customer,
                    deliveryman=deliveryman,
                    items=order_items,
                )
            )
        return hydrated

    def _accumulate(self, where: Optional[ColumnElement], operation: str) -> Dict[int, _OrderRows]:
        statement = select(
            orders.c.id.label("order_id"),
            orders.c.total_price,
            orders.c.date,
            orders.c.customer_id,
            orders.c.deliveryman_id,
            order_item.c.item_id,
        ).select_from(orders.outerjoin(order_item, orders.c.id == order_item.c.order_id))
        if where is not None:
            statement = statement.where(where)
        statement = statement.order_by(orders.c.id)

        accumulated: Dict[int, _OrderRows] = {}
        with self._provider.acquire(operation) as connection:
            try:
                for row in connection.execute(statement).mappings():
                    entry = accumulated.get(row["order_id"])
                    if entry is None:
                        entry = _OrderRows(
                            id=row["order_id"],
                            total_price=row["total_price"],
                            date=row["date"],
                            customer_id=row["customer_id"],
                            deliveryman_id=row["deliveryman_id"],
                        )
                        accumulated[entry.id] = entry
                    if row["item_id"] is not None:
                        entry.item_ids.append(row["item_id"])
            except SQLAlchemyError as exc:
                logger.error("hydration query failed operation=%s error=%s", operation, describe(exc))
                raise translate_error(exc, operation) from exc
        return accumulated

    @staticmethod
    def _resolve(cache: Dict[int, T], key: int, lookup: Callable[[int], Optional[T]]) -> Optional[T]:
        if key not in cache:
            cache[key] = lookup(key)
        return cache[key]
