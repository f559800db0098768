from fastapi import APIRouter, Depends, HTTPException, status

from smokehouse.core.config import settings
from smokehouse.core.dependencies import (
    get_cart_registry,
    get_catalog,
    get_session_cart,
    peek_session_cart,
    session_header,
)
from smokehouse.schemas.cart import CartItemCreate, CartItemRead, CartItemUpdate, CartRead
from smokehouse.services import pricing
from smokehouse.services.cart import CartRegistry, CartStore, line_subtotal
from smokehouse.services.catalog import Catalog

router = APIRouter(prefix="/cart", tags=["cart"])


def serialize_cart(cart: CartStore) -> CartRead:
    items = cart.items
    lines = []
    for item in items:
        product = item.product
        base = pricing.parse_weight_grams(product.weight)
        lines.append(
            CartItemRead(
                product_id=product.id,
                name=product.name,
                weight=product.weight,
                quantity=item.quantity,
                quantity_label=pricing.format_grams(item.quantity),
                price=product.price,
                price_per_kg=pricing.get_price_per_kg(product.price, base),
                subtotal=line_subtotal(item),
                image=product.image,
            )
        )
    return CartRead(
        session_id=cart.session_id or "",
        items=lines,
        total_items=len(lines),
        total_price=sum(line.subtotal for line in lines),
        currency=settings.currency,
        is_empty=not lines,
    )


@router.get("", response_model=CartRead)
def get_cart(cart: CartStore = Depends(peek_session_cart)) -> CartRead:
    return serialize_cart(cart)


@router.post("/items", response_model=CartRead, status_code=status.HTTP_201_CREATED)
def add_item(
    payload: CartItemCreate,
    cart: CartStore = Depends(get_session_cart),
    catalog: Catalog = Depends(get_catalog),
) -> CartRead:
    product = catalog.get(payload.product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    cart.add_to_cart(product, payload.quantity)
    return serialize_cart(cart)


@router.patch("/items/{product_id}", response_model=CartRead)
def update_item(
    product_id: str,
    payload: CartItemUpdate,
    cart: CartStore = Depends(peek_session_cart),
) -> CartRead:
    cart.update_quantity(product_id, payload.quantity)
    return serialize_cart(cart)


@router.delete("/items/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(product_id: str, cart: CartStore = Depends(peek_session_cart)) -> None:
    cart.remove_from_cart(product_id)
    return None


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(cart: CartStore = Depends(peek_session_cart)) -> None:
    cart.clear_cart()
    return None


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
def end_session(
    session_id: str | None = Depends(session_header),
    registry: CartRegistry = Depends(get_cart_registry),
) -> None:
    if session_id:
        registry.discard(session_id)
    return None
