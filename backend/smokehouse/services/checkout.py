from __future__ import annotations

import logging

from fastapi import HTTPException, status

from smokehouse.schemas.order import CustomerDetails, OrderRead
from smokehouse.services.cart import CartStore
from smokehouse.services.notifications import OrderNotifier
from smokehouse.services.orders import OrderStore, OrderSubmissionError, normalize_phone

logger = logging.getLogger(__name__)

MIN_PHONE_LENGTH = 10


def validate_customer(customer: CustomerDetails) -> None:
    errors: dict[str, str] = {}
    if not customer.name.strip():
        errors["name"] = "Name is required"
    if len(normalize_phone(customer.phone)) < MIN_PHONE_LENGTH:
        errors["phone"] = "Enter a valid phone number"
    if customer.delivery_method == "delivery" and not (customer.address or "").strip():
        errors["address"] = "Address is required for delivery"
    if errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)


async def checkout(
    cart: CartStore,
    customer: CustomerDetails,
    *,
    orders: OrderStore,
    notifier: OrderNotifier | None = None,
) -> OrderRead:
    """Submit the cart as an order.

    The ordered grams leave the cart as soon as the order is stored, before
    any notification goes out; lines added meanwhile stay in the cart.
    """
    snapshot = cart.begin_checkout()
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Checkout already in progress")
    ordered = None
    try:
        if not snapshot.items:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cart is empty")
        validate_customer(customer)
        try:
            order = orders.submit(snapshot, customer)
        except OrderSubmissionError as exc:
            logger.error("checkout.submit_failed", extra={"error": str(exc)})
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail="Order could not be submitted"
            ) from exc
        ordered = snapshot
    finally:
        cart.finish_checkout(ordered)

    logger.info("checkout.completed", extra={"order_id": order.id, "total_price": order.total_price})
    if notifier is not None:
        await notifier.notify(order)
    return order
