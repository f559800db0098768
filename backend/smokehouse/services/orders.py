from __future__ import annotations

import logging
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from smokehouse.core.config import settings
from smokehouse.schemas.order import CustomerDetails, OrderLine, OrderRead
from smokehouse.services.cart import CartSnapshot, line_subtotal

logger = logging.getLogger(__name__)

_ORDERS_ADAPTER = TypeAdapter(list[OrderRead])
_PHONE_NOISE_RE = re.compile(r"[\s\-()]")


class OrderSubmissionError(RuntimeError):
    """The order could not be stored; the caller must keep the cart."""


def normalize_phone(phone: str) -> str:
    return _PHONE_NOISE_RE.sub("", phone or "")


def _new_order_id() -> str:
    return uuid4().hex[:12]


def build_order(snapshot: CartSnapshot, customer: CustomerDetails, *, currency: str) -> OrderRead:
    return OrderRead(
        id=_new_order_id(),
        items=[
            OrderLine(
                product_id=item.product.id,
                name=item.product.name,
                weight=item.product.weight,
                quantity_grams=item.quantity,
                subtotal=line_subtotal(item),
            )
            for item in snapshot.items
        ],
        total_price=snapshot.total_price,
        currency=currency,
        customer_name=customer.name.strip(),
        customer_phone=customer.phone.strip(),
        customer_email=str(customer.email) if customer.email else None,
        delivery_method=customer.delivery_method,
        address=(customer.address or "").strip() or None,
        comment=(customer.comment or "").strip() or None,
        status="pending",
        created_at=datetime.now(timezone.utc),
    )


class OrderStore:
    """Local order history, optionally mirrored to a JSON file."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else None
        self._orders: list[OrderRead] = []
        self._lock = threading.Lock()
        if self.path is not None:
            self._orders = self._load(self.path)

    def __len__(self) -> int:
        return len(self._orders)

    @staticmethod
    def _load(path: Path) -> list[OrderRead]:
        if not path.exists():
            return []
        try:
            return _ORDERS_ADAPTER.validate_json(path.read_bytes())
        except (OSError, ValidationError) as exc:
            logger.warning("Order cache %s unreadable, starting empty: %s", path, exc)
            return []

    @staticmethod
    def _flush(path: Path, orders: list[OrderRead]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_bytes(_ORDERS_ADAPTER.dump_json(orders, indent=2))
        tmp.replace(path)

    def submit(self, snapshot: CartSnapshot, customer: CustomerDetails, *, currency: str | None = None) -> OrderRead:
        order = build_order(snapshot, customer, currency=currency or settings.currency)
        with self._lock:
            pending = [*self._orders, order]
            if self.path is not None:
                try:
                    self._flush(self.path, pending)
                except OSError as exc:
                    raise OrderSubmissionError(f"Could not store order: {exc}") from exc
            self._orders = pending
        logger.info(
            "order.stored",
            extra={"order_id": order.id, "total_price": order.total_price, "lines": len(order.items)},
        )
        return order

    def get(self, order_id: str) -> OrderRead | None:
        with self._lock:
            return next((o for o in self._orders if o.id == order_id), None)

    def list_for_phone(self, phone: str) -> list[OrderRead]:
        wanted = normalize_phone(phone)
        if not wanted:
            return []
        with self._lock:
            matches = [o for o in self._orders if normalize_phone(o.customer_phone) == wanted]
        # newest first, ties broken by later submission
        return sorted(reversed(matches), key=lambda o: o.created_at, reverse=True)
