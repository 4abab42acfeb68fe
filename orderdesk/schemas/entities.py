from __future__ import annotations

from datetime import date as date_type
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderSummary(BaseModel):
    id: int


class CustomerWrite(BaseModel):
    name: str
    address: str = ""
    phone_number: str


class CustomerRead(CustomerWrite):
    id: int
    # Recomputed from the orders table on every read.
    orders: List[OrderSummary] = Field(default_factory=list)


class DeliverymanWrite(BaseModel):
    name: str
    phone_number: str


class DeliverymanRead(DeliverymanWrite):
    id: int
    orders: List[OrderSummary] = Field(default_factory=list)


class ItemWrite(BaseModel):
    name: str
    price: Decimal = Field(ge=0)


class ItemRead(ItemWrite):
    id: int


class OrderWrite(BaseModel):
    total_price: Decimal = Field(default=Decimal("0"), ge=0)
    date: date_type = Field(default_factory=date_type.today)
    customer_id: int
    deliveryman_id: Optional[int] = None
    item_ids: List[int] = Field(default_factory=list)


class OrderRead(BaseModel):
    id: int
    total_price: Decimal
    date: date_type
    customer: Optional[CustomerRead] = None
    deliveryman: Optional[DeliverymanRead] = None
    items: List[ItemRead] = Field(default_factory=list)
