# storefront/schemas/order_schemas.py
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from storefront.constants.order_status import PENDING_PAYMENT_METHOD, ShippingOption

RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartItemSchema(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    id: RequiredStr
    name: RequiredStr
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    image: Optional[str] = None


class OrderCreate(CamelModel):
    full_name: RequiredStr
    email: EmailStr
    phone: RequiredStr
    address: RequiredStr
    city: RequiredStr
    postal_code: RequiredStr

    payment_method: Literal[PENDING_PAYMENT_METHOD] = PENDING_PAYMENT_METHOD
    shipping_option: ShippingOption

    cart_items: List[CartItemSchema] = Field(min_length=1)

    subtotal: float
    discount: float
    tax: float
    shipping_cost: float
    total: float


class PayOrderRequest(CamelModel):
    payment_method: RequiredStr


class OrderRead(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: str
    full_name: str
    email: str
    phone: str
    address: str
    city: str
    postal_code: str
    payment_method: str
    shipping_option: str
    cart_items: List[CartItemSchema]
    subtotal: float
    discount: float
    tax: float
    shipping_cost: float
    total: float
    is_paid: bool
    paid_at: Optional[datetime] = None
    created_at: datetime

    @field_validator("paid_at", "created_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands timestamps back without an offset; they are stored as UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ErrorResponse(BaseModel):
    message: str
