from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable

from smokehouse.core.config import settings
from smokehouse.schemas.catalog import Grams, Product
from smokehouse.services import pricing

logger = logging.getLogger(__name__)

CartListener = Callable[["CartStore"], None]


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: Grams


@dataclass(frozen=True)
class CartSnapshot:
    """Immutable view of a cart handed to the order collaborator at checkout."""

    items: tuple[CartItem, ...]
    total_price: int

    @property
    def total_items(self) -> int:
        return len(self.items)


def line_subtotal(item: CartItem) -> int:
    product = item.product
    return pricing.get_subtotal(product.price, pricing.parse_weight_grams(product.weight), item.quantity)


class CartStore:
    """Live cart for one session.

    Lines are unique by product id and kept in insertion order. Quantities are
    grams. ``add_to_cart`` is additive and the only way to create a line;
    ``update_quantity`` sets an absolute value and removes the line when the
    value is not positive. Totals are recomputed on every read.
    """

    def __init__(self, session_id: str | None = None) -> None:
        self.session_id = session_id
        self._lines: dict[str, CartItem] = {}
        self._listeners: list[CartListener] = []
        self._lock = threading.RLock()
        self._checking_out = False
        self.last_touched = 0.0

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._lines

    @property
    def items(self) -> tuple[CartItem, ...]:
        with self._lock:
            return tuple(self._lines.values())

    @property
    def total_items(self) -> int:
        with self._lock:
            return len(self._lines)

    @property
    def total_price(self) -> int:
        return sum(line_subtotal(item) for item in self.items)

    @property
    def is_empty(self) -> bool:
        return self.total_items == 0

    def get_item_quantity(self, product_id: str) -> int:
        with self._lock:
            item = self._lines.get(product_id)
            return item.quantity if item else 0

    def add_to_cart(self, product: Product, quantity: int | None = None) -> None:
        amount = settings.cart_default_increment_grams if quantity is None else quantity
        if amount == 0:
            return
        with self._lock:
            existing = self._lines.get(product.id)
            new_quantity = (existing.quantity if existing else 0) + amount
            if new_quantity <= 0:
                if existing is None:
                    return
                del self._lines[product.id]
            elif existing is not None:
                self._lines[product.id] = replace(existing, quantity=Grams(new_quantity))
            else:
                self._lines[product.id] = CartItem(product=product, quantity=Grams(new_quantity))
                if not pricing.has_known_weight(product.weight):
                    logger.warning(
                        "cart.unpriced_line",
                        extra={"product_id": product.id, "weight_label": product.weight},
                    )
        logger.debug("cart.add", extra={"product_id": product.id, "quantity": amount})
        self._notify()

    def remove_from_cart(self, product_id: str) -> None:
        with self._lock:
            if self._lines.pop(product_id, None) is None:
                return
        logger.debug("cart.remove", extra={"product_id": product_id})
        self._notify()

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_from_cart(product_id)
            return
        with self._lock:
            existing = self._lines.get(product_id)
            if existing is None or existing.quantity == quantity:
                return
            self._lines[product_id] = replace(existing, quantity=Grams(quantity))
        logger.debug("cart.update", extra={"product_id": product_id, "quantity": quantity})
        self._notify()

    def clear_cart(self) -> None:
        with self._lock:
            had_lines = bool(self._lines)
            self._lines.clear()
        if had_lines:
            self._notify()

    def snapshot(self) -> CartSnapshot:
        with self._lock:
            items = tuple(self._lines.values())
        return CartSnapshot(items=items, total_price=sum(line_subtotal(item) for item in items))

    @property
    def checking_out(self) -> bool:
        return self._checking_out

    def begin_checkout(self) -> CartSnapshot | None:
        """Claim the cart for checkout and return what is being ordered.

        Returns ``None`` while another checkout of this cart is in flight.
        """
        with self._lock:
            if self._checking_out:
                return None
            self._checking_out = True
            return self.snapshot()

    def finish_checkout(self, ordered: CartSnapshot | None = None) -> None:
        """Release the checkout claim, taking the ``ordered`` grams off the cart.

        Lines added or topped up after the snapshot keep the difference.
        """
        changed = False
        with self._lock:
            self._checking_out = False
            for item in ordered.items if ordered is not None else ():
                existing = self._lines.get(item.product.id)
                if existing is None:
                    continue
                remaining = existing.quantity - item.quantity
                if remaining > 0:
                    self._lines[item.product.id] = replace(existing, quantity=Grams(remaining))
                else:
                    del self._lines[item.product.id]
                changed = True
        if changed:
            self._notify()

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self)


class CartRegistry:
    """Owns one ``CartStore`` per session.

    Carts are registered on first write and dropped on ``discard`` or once
    they sit idle longer than ``idle_ttl_seconds``. Reads of an unknown
    session get a detached empty cart so browsing never grows the registry.
    """

    def __init__(
        self,
        idle_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._carts: dict[str, CartStore] = {}
        self._lock = threading.Lock()
        self._idle_ttl = idle_ttl_seconds
        self._clock = clock

    def __len__(self) -> int:
        return len(self._carts)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._carts

    def get(self, session_id: str) -> CartStore:
        now = self._clock()
        with self._lock:
            expired = self._evict_idle(now)
            cart = self._carts.get(session_id)
            if cart is None:
                cart = CartStore(session_id=session_id)
                self._carts[session_id] = cart
                logger.info("cart.session_started", extra={"cart_session": session_id})
            cart.last_touched = now
        self._end(expired, reason="expired")
        return cart

    def peek(self, session_id: str) -> CartStore:
        now = self._clock()
        with self._lock:
            expired = self._evict_idle(now)
            cart = self._carts.get(session_id)
            if cart is not None:
                cart.last_touched = now
        self._end(expired, reason="expired")
        return cart if cart is not None else CartStore(session_id=session_id)

    def discard(self, session_id: str) -> None:
        with self._lock:
            cart = self._carts.pop(session_id, None)
        if cart is not None:
            self._end({session_id: cart}, reason="discarded")

    def _evict_idle(self, now: float) -> dict[str, CartStore]:
        if self._idle_ttl is None:
            return {}
        cutoff = now - self._idle_ttl
        expired = {
            sid: cart
            for sid, cart in self._carts.items()
            if cart.last_touched < cutoff and not cart.checking_out
        }
        for sid in expired:
            del self._carts[sid]
        return expired

    @staticmethod
    def _end(carts: dict[str, CartStore], *, reason: str) -> None:
        for session_id, cart in carts.items():
            cart.clear_cart()
            logger.info("cart.session_ended", extra={"cart_session": session_id, "reason": reason})
