from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import String, bindparam, cast, delete, func, insert, select, update

from orderdesk.core.database import ConnectionProvider, get_connection_provider
from orderdesk.core.errors import NotFoundError, StorageError
from orderdesk.core.transactions import Step, TransactionCoordinator
from orderdesk.models.order_item import order_item
from orderdesk.repositories.base import like_pattern, orders
from orderdesk.repositories.customers import CustomerRepository
from orderdesk.repositories.deliverymen import DeliverymanRepository
from orderdesk.repositories.hydration import OrderHydrator
from orderdesk.repositories.items import ItemRepository
from orderdesk.schemas.entities import OrderRead, OrderWrite

logger = logging.getLogger(__name__)

_INSERT_ORDER = insert(orders)
_INSERT_LINK = insert(order_item)
_UPDATE_ORDER = (
    update(orders)
    .where(orders.c.id == bindparam("target_id"))
    .values(
        total_price=bindparam("new_total_price"),
        date=bindparam("new_date"),
        customer_id=bindparam("new_customer_id"),
        deliveryman_id=bindparam("new_deliveryman_id"),
    )
)
_DELETE_LINKS = delete(order_item).where(order_item.c.order_id == bindparam("target_id"))
_DELETE_ORDER = delete(orders).where(orders.c.id == bindparam("target_id"))


def _price_text(dialect_name: str):
    # NUMERIC comes back from SQLite as REAL, so 10.00 would read as "10"
    if dialect_name == "sqlite":
        return func.printf("%.2f", orders.c.total_price)
    return cast(orders.c.total_price, String)


def _header(order: OrderWrite) -> dict:
    return {
        "total_price": order.total_price,
        "date": order.date,
        "customer_id": order.customer_id,
        "deliveryman_id": order.deliveryman_id,
    }


class OrderRepository:
    """Create, read, update, delete and search whole Order aggregates.

    Reads go through :class:`OrderHydrator`, writes through
    :class:`TransactionCoordinator`, so a header never exists without the links
    it was written with and never keeps links of an older version.
    """

    entity_name = "orders"

    def __init__(
        self,
        provider: ConnectionProvider | None = None,
        coordinator: TransactionCoordinator | None = None,
        hydrator: OrderHydrator | None = None,
        customers: CustomerRepository | None = None,
        deliverymen: DeliverymanRepository | None = None,
        items: ItemRepository | None = None,
    ) -> None:
        self._provider = provider or get_connection_provider()
        self._coordinator = coordinator or TransactionCoordinator(self._provider)
        self._hydrator = hydrator or OrderHydrator(
            self._provider,
            customers=customers,
            deliverymen=deliverymen,
            items=items,
        )

    def operation(self, action: str) -> str:
        return f"{self.entity_name}.{action}"

    def get_all(self) -> List[OrderRead]:
        return self._hydrator.hydrate(operation=self.operation("get_all"))

    def get_by_id(self, order_id: int) -> Optional[OrderRead]:
        found = self._hydrator.hydrate(orders.c.id == order_id, operation=self.operation("get_by_id"))
        return found[0] if found else None

    def get_by_item(self, item_id: int) -> List[OrderRead]:
        referencing = select(order_item.c.order_id).where(order_item.c.item_id == item_id)
        return self._hydrator.hydrate(orders.c.id.in_(referencing), operation=self.operation("get_by_item"))

    def search(self, keyword: str) -> List[OrderRead]:
        matches = _price_text(self._provider.engine.dialect.name).like(like_pattern(keyword))
        return self._hydrator.hydrate(matches, operation=self.operation("search"))

    def add(self, order: OrderWrite) -> int:
        item_ids = list(order.item_ids)
        result = self._coordinator.run(
            [
                Step(
                    _INSERT_ORDER,
                    _header(order),
                    label="insert order",
                    capture="order_id",
                    require_rows=StorageError,
                ),
                Step(
                    _INSERT_LINK,
                    lambda captured: [{"order_id": captured["order_id"], "item_id": item_id} for item_id in item_ids],
                    label="insert order links",
                ),
            ],
            operation=self.operation("add"),
        )
        order_id = result.captured["order_id"]
        logger.info("order added id=%s items=%s", order_id, len(item_ids))
        return order_id

    def update(self, order_id: int, order: OrderWrite) -> None:
        header = {f"new_{name}": value for name, value in _header(order).items()}
        header["target_id"] = order_id
        links = [{"order_id": order_id, "item_id": item_id} for item_id in order.item_ids]
        self._coordinator.run(
            [
                Step(_UPDATE_ORDER, header, label="update order", require_rows=NotFoundError),
                Step(_DELETE_LINKS, {"target_id": order_id}, label="delete order links"),
                Step(_INSERT_LINK, links, label="insert order links"),
            ],
            operation=self.operation("update"),
        )
        logger.info("order updated id=%s items=%s", order_id, len(links))

    def delete(self, order_id: int) -> int:
        params = {"target_id": order_id}
        result = self._coordinator.run(
            [
                Step(_DELETE_LINKS, params, label="delete order links"),
                Step(_DELETE_ORDER, params, label="delete order"),
            ],
            operation=self.operation("delete"),
        )
        logger.info("order deleted id=%s links=%s", order_id, result.rowcount("delete order links"))
        return result.rowcount("delete order")
