from types import SimpleNamespace

from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from orderdesk.core.database import Base, ConnectionProvider, create_db_engine
from orderdesk.core.transactions import TransactionCoordinator
from orderdesk.models.order import Order
from orderdesk.models.order_item import order_item
from orderdesk.repositories.customers import CustomerRepository
from orderdesk.repositories.deliverymen import DeliverymanRepository
from orderdesk.repositories.items import ItemRepository
from orderdesk.repositories.orders import OrderRepository

MEMORY_URL = "sqlite+pysqlite:///:memory:"


def build_store() -> SimpleNamespace:
    engine = create_db_engine(MEMORY_URL, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    provider = ConnectionProvider(engine)
    coordinator = TransactionCoordinator(provider)
    customers = CustomerRepository(provider, coordinator)
    deliverymen = DeliverymanRepository(provider, coordinator)
    items = ItemRepository(provider, coordinator)
    orders = OrderRepository(
        provider,
        coordinator,
        customers=customers,
        deliverymen=deliverymen,
        items=items,
    )
    return SimpleNamespace(
        engine=engine,
        provider=provider,
        coordinator=coordinator,
        customers=customers,
        deliverymen=deliverymen,
        items=items,
        orders=orders,
    )


def count_links(engine, order_id=None, item_id=None) -> int:
    statement = select(func.count()).select_from(order_item)
    if order_id is not None:
        statement = statement.where(order_item.c.order_id == order_id)
    if item_id is not None:
        statement = statement.where(order_item.c.item_id == item_id)
    with engine.connect() as connection:
        return connection.execute(statement).scalar_one()


def count_orders(engine, customer_id=None) -> int:
    table = Order.__table__
    statement = select(func.count()).select_from(table)
    if customer_id is not None:
        statement = statement.where(table.c.customer_id == customer_id)
    with engine.connect() as connection:
        return connection.execute(statement).scalar_one()
