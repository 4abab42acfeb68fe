from sqlalchemy import Column, ForeignKey, Integer, Table

from orderdesk.core.database import Base

# Link rows carry no key of their own; the same item may appear twice in one order.
order_item = Table(
    "order_item",
    Base.metadata,
    Column("order_id", Integer, ForeignKey("orders.id"), index=True, nullable=False),
    Column("item_id", Integer, ForeignKey("item.id"), index=True, nullable=False),
)
