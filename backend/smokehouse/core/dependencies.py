import uuid

from fastapi import Depends, Header, Request, Response

from smokehouse.core.logging_config import session_id_ctx_var
from smokehouse.services.cart import CartRegistry, CartStore
from smokehouse.services.catalog import Catalog, load_catalog
from smokehouse.services.notifications import OrderNotifier
from smokehouse.services.orders import OrderStore

SESSION_HEADER = "X-Session-Id"


def get_catalog() -> Catalog:
    return load_catalog()


def get_cart_registry(request: Request) -> CartRegistry:
    return request.app.state.cart_registry


def get_order_store(request: Request) -> OrderStore:
    return request.app.state.order_store


def get_notifier(request: Request) -> OrderNotifier:
    return request.app.state.notifier


def session_header(x_session_id: str | None = Header(default=None)) -> str | None:
    return (x_session_id or "").strip() or None


def _resolve_session(response: Response, session_id: str | None) -> str:
    if not session_id:
        session_id = f"guest-{uuid.uuid4()}"
    session_id_ctx_var.set(session_id)
    response.headers[SESSION_HEADER] = session_id
    return session_id


async def get_session_cart(
    response: Response,
    session_id: str | None = Depends(session_header),
    registry: CartRegistry = Depends(get_cart_registry),
) -> CartStore:
    """Cart for the request's session, registered so writes persist."""
    return registry.get(_resolve_session(response, session_id))


async def peek_session_cart(
    response: Response,
    session_id: str | None = Depends(session_header),
    registry: CartRegistry = Depends(get_cart_registry),
) -> CartStore:
    """Cart for reads and shrinking writes; unknown sessions get an unregistered empty cart."""
    return registry.peek(_resolve_session(response, session_id))
