from pydantic import BaseModel, Field


class CartItemCreate(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int | None = Field(default=None, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int


class CartItemRead(BaseModel):
    product_id: str
    name: str
    weight: str
    quantity: int
    quantity_label: str
    price: int
    price_per_kg: int
    subtotal: int
    image: str | None = None


class CartRead(BaseModel):
    session_id: str
    items: list[CartItemRead] = []
    total_items: int
    total_price: int
    currency: str
    is_empty: bool
