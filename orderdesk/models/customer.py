from sqlalchemy import Column, Integer, String

from orderdesk.core.database import Base


class Customer(Base):
    __tablename__ = "customer"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    phone_number = Column(String(30), nullable=False, index=True)
    address = Column(String(255), nullable=False, default="")
