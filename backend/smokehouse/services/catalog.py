from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable

from pydantic import TypeAdapter

from smokehouse.core.config import settings
from smokehouse.schemas.catalog import Product, ProductRead
from smokehouse.services import pricing

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "catalog.json"

_PRODUCTS_ADAPTER = TypeAdapter(list[Product])


class Catalog:
    """Read-only product list, unique by id, in menu order."""

    def __init__(self, products: Iterable[Product]) -> None:
        self._products: dict[str, Product] = {}
        for product in products:
            if product.id in self._products:
                raise ValueError(f"Duplicate product id in catalog: {product.id}")
            self._products[product.id] = product

    @classmethod
    def from_json(cls, path: str | Path) -> "Catalog":
        raw = Path(path).read_text(encoding="utf-8")
        catalog = cls(_PRODUCTS_ADAPTER.validate_json(raw))
        for product in catalog.list_products():
            if not pricing.has_known_weight(product.weight):
                logger.warning(
                    "catalog.unknown_weight",
                    extra={"product_id": product.id, "weight_label": product.weight},
                )
        return catalog

    def __len__(self) -> int:
        return len(self._products)

    def get(self, product_id: str) -> Product | None:
        return self._products.get(product_id)

    def list_products(self, category: str | None = None, popular_only: bool = False) -> list[Product]:
        products = list(self._products.values())
        if category:
            products = [p for p in products if p.category == category]
        if popular_only:
            products = [p for p in products if p.is_popular]
        return products

    def categories(self) -> list[str]:
        seen: dict[str, None] = {}
        for product in self._products.values():
            seen.setdefault(product.category, None)
        return list(seen)


def describe(product: Product) -> ProductRead:
    base = pricing.parse_weight_grams(product.weight)
    return ProductRead(
        **product.model_dump(),
        base_weight_grams=base,
        price_per_kg=pricing.get_price_per_kg(product.price, base),
        weight_known=base > 0,
    )


@lru_cache
def load_catalog() -> Catalog:
    path = Path(settings.catalog_path) if settings.catalog_path else DEFAULT_CATALOG_PATH
    catalog = Catalog.from_json(path)
    logger.info("Loaded %d products from %s", len(catalog), path)
    return catalog
