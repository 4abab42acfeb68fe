from sqlalchemy import Column, Integer, String

from orderdesk.core.database import Base


class Deliveryman(Base):
    __tablename__ = "deliveryman"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    phone_number = Column(String(30), nullable=False, index=True)
