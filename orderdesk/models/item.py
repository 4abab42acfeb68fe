from sqlalchemy import CheckConstraint, Column, Integer, Numeric, String

from orderdesk.core.database import Base


class Item(Base):
    __tablename__ = "item"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_item_price_non_negative"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
