from typing import NewType

from pydantic import BaseModel, ConfigDict, Field

Grams = NewType("Grams", int)


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    description: str = ""
    price: int = Field(ge=0)
    weight: str
    category: str
    image: str | None = None
    is_popular: bool = False
    heating_time: str | None = None
    calories: float | None = None
    proteins: float | None = None
    fats: float | None = None
    carbs: float | None = None


class ProductRead(Product):
    base_weight_grams: int
    price_per_kg: int
    weight_known: bool
