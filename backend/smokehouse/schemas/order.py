from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

DeliveryMethod = Literal["pickup", "delivery"]


class CustomerDetails(BaseModel):
    name: str = Field(max_length=120)
    phone: str = Field(max_length=32)
    email: EmailStr | None = None
    delivery_method: DeliveryMethod = "pickup"
    address: str | None = Field(default=None, max_length=255)
    comment: str | None = Field(default=None, max_length=1000)


class OrderLine(BaseModel):
    product_id: str
    name: str
    weight: str
    quantity_grams: int
    subtotal: int


class OrderRead(BaseModel):
    id: str
    items: list[OrderLine]
    total_price: int
    currency: str
    customer_name: str
    customer_phone: str
    customer_email: str | None = None
    delivery_method: DeliveryMethod
    address: str | None = None
    comment: str | None = None
    status: str = "pending"
    created_at: datetime
