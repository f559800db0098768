from fastapi import APIRouter, Depends, HTTPException, Query, status

from smokehouse.core.dependencies import get_catalog
from smokehouse.schemas.catalog import ProductRead
from smokehouse.services.catalog import Catalog, describe

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/products", response_model=list[ProductRead])
def list_products(
    category: str | None = Query(default=None),
    popular: bool = Query(default=False),
    catalog: Catalog = Depends(get_catalog),
) -> list[ProductRead]:
    return [describe(p) for p in catalog.list_products(category=category, popular_only=popular)]


@router.get("/products/{product_id}", response_model=ProductRead)
def get_product(product_id: str, catalog: Catalog = Depends(get_catalog)) -> ProductRead:
    product = catalog.get(product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return describe(product)


@router.get("/categories", response_model=list[str])
def list_categories(catalog: Catalog = Depends(get_catalog)) -> list[str]:
    return catalog.categories()
