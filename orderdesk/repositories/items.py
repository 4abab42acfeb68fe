from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import bindparam, delete, select
from sqlalchemy.engine import RowMapping

from orderdesk.core.transactions import Step
from orderdesk.models.item import Item
from orderdesk.models.order_item import order_item
from orderdesk.repositories.base import EntityRepository
from orderdesk.schemas.entities import ItemRead, ItemWrite

logger = logging.getLogger(__name__)

items = Item.__table__

_DELETE_ITEM_LINKS = delete(order_item).where(order_item.c.item_id == bindparam("target_id"))
_DELETE_ITEM = delete(items).where(items.c.id == bindparam("target_id"))


def _to_item(row: RowMapping) -> ItemRead:
    return ItemRead(id=row["id"], name=row["name"], price=row["price"])


class ItemRepository(EntityRepository):
    entity_name = "items"
    table = items
    search_columns = ("name",)

    def get_all(self) -> List[ItemRead]:
        rows = self._fetch(select(items).order_by(items.c.id), "get_all")
        return [_to_item(row) for row in rows]

    def get_by_id(self, item_id: int) -> Optional[ItemRead]:
        rows = self._fetch(select(items).where(items.c.id == item_id), "get_by_id")
        return _to_item(rows[0]) if rows else None

    def get_by_name(self, name: str) -> Optional[ItemRead]:
        statement = select(items).where(items.c.name == name).order_by(items.c.id).limit(1)
        rows = self._fetch(statement, "get_by_name")
        return _to_item(rows[0]) if rows else None

    def add(self, name: str, price: Decimal) -> int:
        payload = ItemWrite(name=name, price=price)
        return self._insert_row(payload.model_dump())

    def update(self, item_id: int, name: str, price: Decimal) -> int:
        payload = ItemWrite(name=name, price=price)
        return self._update_row(item_id, payload.model_dump())

    def delete(self, item_id: int) -> int:
        params = {"target_id": item_id}
        result = self._write(
            [
                Step(_DELETE_ITEM_LINKS, params, label="delete order links"),
                Step(_DELETE_ITEM, params, label="delete item"),
            ],
            "delete",
        )
        logger.info("item deleted id=%s links=%s", item_id, result.rowcount("delete order links"))
        return result.rowcount("delete item")

    def search(self, keyword: str, descending: bool = False, case_sensitive: bool = True) -> List[ItemRead]:
        name = items.c.name.desc() if descending else items.c.name.asc()
        statement = (
            select(items)
            .where(self._keyword_filter(keyword, case_sensitive))
            .order_by(name, items.c.id)
        )
        return [_to_item(row) for row in self._fetch(statement, "search")]
