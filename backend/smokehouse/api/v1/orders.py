from fastapi import APIRouter, Depends, Query, status

from smokehouse.core.dependencies import get_notifier, get_order_store, peek_session_cart
from smokehouse.schemas.order import CustomerDetails, OrderRead
from smokehouse.services import checkout as checkout_service
from smokehouse.services.cart import CartStore
from smokehouse.services.notifications import OrderNotifier
from smokehouse.services.orders import OrderStore

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/checkout", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def checkout(
    payload: CustomerDetails,
    cart: CartStore = Depends(peek_session_cart),
    orders: OrderStore = Depends(get_order_store),
    notifier: OrderNotifier = Depends(get_notifier),
) -> OrderRead:
    return await checkout_service.checkout(cart, payload, orders=orders, notifier=notifier)


@router.get("", response_model=list[OrderRead])
def list_orders(
    phone: str = Query(min_length=1),
    orders: OrderStore = Depends(get_order_store),
) -> list[OrderRead]:
    return orders.list_for_phone(phone)
