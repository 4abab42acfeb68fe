from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import bindparam, delete, update
from sqlalchemy.engine import RowMapping

from orderdesk.core.transactions import Step
from orderdesk.models.deliveryman import Deliveryman
from orderdesk.repositories.base import OrderOwnerRepository, orders
from orderdesk.schemas.entities import DeliverymanRead, DeliverymanWrite

logger = logging.getLogger(__name__)

deliverymen = Deliveryman.__table__

# Orders outlive the deliveryman: detach them before the row goes away.
_DETACH_ORDERS = (
    update(orders)
    .where(orders.c.deliveryman_id == bindparam("target_id"))
    .values(deliveryman_id=None)
)
_DELETE_DELIVERYMAN = delete(deliverymen).where(deliverymen.c.id == bindparam("target_id"))


class DeliverymanRepository(OrderOwnerRepository):
    entity_name = "deliverymen"
    table = deliverymen
    owner_column = "deliveryman_id"
    search_columns = ("name", "phone_number")

    def _build(self, row: RowMapping) -> DeliverymanRead:
        return DeliverymanRead(id=row["id"], name=row["name"], phone_number=row["phone_number"])

    def get_all(self) -> List[DeliverymanRead]:
        return super().get_all()

    def get_by_id(self, deliveryman_id: int) -> Optional[DeliverymanRead]:
        return super().get_by_id(deliveryman_id)

    def add(self, name: str, phone_number: str) -> int:
        payload = DeliverymanWrite(name=name, phone_number=phone_number)
        return self._insert_row(payload.model_dump())

    def update(self, deliveryman_id: int, name: str, phone_number: str) -> int:
        payload = DeliverymanWrite(name=name, phone_number=phone_number)
        return self._update_row(deliveryman_id, payload.model_dump())

    def delete(self, deliveryman_id: int) -> int:
        params = {"target_id": deliveryman_id}
        result = self._write(
            [
                Step(_DETACH_ORDERS, params, label="detach orders"),
                Step(_DELETE_DELIVERYMAN, params, label="delete deliveryman"),
            ],
            "delete",
        )
        logger.info(
            "deliveryman deleted id=%s detached_orders=%s",
            deliveryman_id,
            result.rowcount("detach orders"),
        )
        return result.rowcount("delete deliveryman")

    def search(self, keyword: str, descending: bool = False, case_sensitive: bool = True) -> List[DeliverymanRead]:
        return super().search(keyword, descending=descending, case_sensitive=case_sensitive)
