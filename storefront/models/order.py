from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Column, DateTime, JSON
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(SQLModel, table=True):
    __tablename__ = "order"

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)

    full_name: str
    email: str = Field(index=True)
    phone: str
    address: str
    city: str
    postal_code: str

    payment_method: str = Field(default="pending")
    shipping_option: str

    # snapshot of the cart at checkout time, never updated afterwards
    cart_items: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    subtotal: float
    discount: float
    tax: float
    shipping_cost: float
    total: float

    is_paid: bool = Field(default=False)
    paid_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
