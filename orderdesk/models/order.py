from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Integer, Numeric

from orderdesk.core.database import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (CheckConstraint("total_price >= 0", name="ck_orders_total_price_non_negative"),)

    id = Column(Integer, primary_key=True)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    date = Column(Date, nullable=False)

    # No ON DELETE rules: dependent rows are removed by the repositories, in order.
    customer_id = Column(Integer, ForeignKey("customer.id"), index=True, nullable=False)
    deliveryman_id = Column(Integer, ForeignKey("deliveryman.id"), index=True, nullable=True)
