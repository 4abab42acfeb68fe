from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import bindparam, delete, select
from sqlalchemy.engine import RowMapping

from orderdesk.core.transactions import Step
from orderdesk.models.customer import Customer
from orderdesk.models.order_item import order_item
from orderdesk.repositories.base import OrderOwnerRepository, orders
from orderdesk.schemas.entities import CustomerRead, CustomerWrite

logger = logging.getLogger(__name__)

customers = Customer.__table__

# Children first: links of the customer's orders, the orders, then the customer.
_DELETE_ORDER_LINKS = delete(order_item).where(
    order_item.c.order_id.in_(
        select(orders.c.id).where(orders.c.customer_id == bindparam("target_id"))
    )
)
_DELETE_ORDERS = delete(orders).where(orders.c.customer_id == bindparam("target_id"))
_DELETE_CUSTOMER = delete(customers).where(customers.c.id == bindparam("target_id"))


class CustomerRepository(OrderOwnerRepository):
    entity_name = "customers"
    table = customers
    owner_column = "customer_id"
    search_columns = ("name", "phone_number")

    def _build(self, row: RowMapping) -> CustomerRead:
        return CustomerRead(
            id=row["id"],
            name=row["name"],
            address=row["address"] or "",
            phone_number=row["phone_number"],
        )

    def get_all(self) -> List[CustomerRead]:
        return super().get_all()

    def get_by_id(self, customer_id: int) -> Optional[CustomerRead]:
        return super().get_by_id(customer_id)

    def add(self, name: str, address: str, phone_number: str) -> int:
        payload = CustomerWrite(name=name, address=address, phone_number=phone_number)
        return self._insert_row(payload.model_dump())

    def update(self, customer_id: int, name: str, address: str, phone_number: str) -> int:
        payload = CustomerWrite(name=name, address=address, phone_number=phone_number)
        return self._update_row(customer_id, payload.model_dump())

    def delete(self, customer_id: int) -> int:
        params = {"target_id": customer_id}
        result = self._write(
            [
                Step(_DELETE_ORDER_LINKS, params, label="delete order links"),
                Step(_DELETE_ORDERS, params, label="delete orders"),
                Step(_DELETE_CUSTOMER, params, label="delete customer"),
            ],
            "delete",
        )
        logger.info(
            "customer deleted id=%s orders=%s links=%s",
            customer_id,
            result.rowcount("delete orders"),
            result.rowcount("delete order links"),
        )
        return result.rowcount("delete customer")

    def search(self, keyword: str, descending: bool = False, case_sensitive: bool = True) -> List[CustomerRead]:
        return super().search(keyword, descending=descending, case_sensitive=case_sensitive)
