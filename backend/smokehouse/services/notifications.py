from __future__ import annotations

import logging
import re
import smtplib
from email.message import EmailMessage

import httpx

from smokehouse.core.config import settings
from smokehouse.schemas.order import OrderRead
from smokehouse.services.pricing import format_grams

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"

_MARKDOWN_SPECIALS_RE = re.compile(r"([_*`\[])")

_DELIVERY_LABELS = {"pickup": "Самовывоз", "delivery": "Доставка"}


def _escape_markdown(value: str) -> str:
    return _MARKDOWN_SPECIALS_RE.sub(r"\\\1", value)


def render_order_message(order: OrderRead, currency_symbol: str | None = None) -> str:
    """Telegram (legacy Markdown) text announcing a new order to the kitchen chat."""
    symbol = currency_symbol or settings.currency_symbol
    lines = [
        "🔥 *Новый заказ!*",
        f"№ {order.id}",
        "",
        f"👤 *Имя:* {_escape_markdown(order.customer_name)}",
        f"📞 *Телефон:* {_escape_markdown(order.customer_phone)}",
    ]
    if order.customer_email:
        lines.append(f"📧 *Email:* {_escape_markdown(order.customer_email)}")
    lines.append(f"🚚 *Получение:* {_DELIVERY_LABELS.get(order.delivery_method, order.delivery_method)}")
    if order.address:
        lines.append(f"🏠 *Адрес:* {_escape_markdown(order.address)}")
    if order.comment:
        lines.append(f"💬 *Комментарий:* {_escape_markdown(order.comment)}")
    lines += ["", "📦 *Заказ:*"]
    for line in order.items:
        lines.append(
            f"• {_escape_markdown(line.name)} × {format_grams(line.quantity_grams)} — {line.subtotal} {symbol}"
        )
    lines += ["", f"💰 *Итого: {order.total_price} {symbol}*"]
    return "\n".join(lines)


def telegram_enabled() -> bool:
    return bool((settings.telegram_bot_token or "").strip() and (settings.telegram_chat_id or "").strip())


async def send_telegram_message(text: str) -> bool:
    if not telegram_enabled():
        return False
    url = f"{TELEGRAM_API_URL}/bot{settings.telegram_bot_token}/sendMessage"
    payload = {"chat_id": settings.telegram_chat_id, "text": text, "parse_mode": "Markdown"}
    try:
        async with httpx.AsyncClient(timeout=settings.telegram_timeout_seconds) as client:
            resp = await client.post(url, json=payload)
    except httpx.HTTPError as exc:
        logger.warning("Telegram send failed: %s", exc)
        return False
    if resp.status_code != 200:
        logger.warning("Telegram send rejected: HTTP %s", resp.status_code)
        return False
    return True


def _build_order_email(order: OrderRead) -> EmailMessage:
    symbol = settings.currency_symbol
    lines = [f"Спасибо за заказ № {order.id}!", "", "Состав заказа:"]
    for line in order.items:
        lines.append(f"- {line.name}, {format_grams(line.quantity_grams)}: {line.subtotal} {symbol}")
    lines += ["", f"Итого: {order.total_price} {symbol}", "Мы свяжемся с вами для подтверждения."]

    msg = EmailMessage()
    msg["Subject"] = f"Заказ № {order.id}"
    msg["From"] = settings.smtp_from_email or "no-reply@smokehouse.local"
    msg["To"] = order.customer_email or ""
    msg.set_content("\n".join(lines))
    return msg


async def send_order_email(order: OrderRead) -> bool:
    if not settings.smtp_enabled or not order.customer_email:
        return False
    msg = _build_order_email(order)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_username and settings.smtp_password:
                smtp.login(settings.smtp_username, settings.smtp_password)
            smtp.send_message(msg)
        return True
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Order email failed: %s", exc)
        return False


class OrderNotifier:
    """Fans a stored order out to the kitchen chat and the customer's inbox."""

    async def notify(self, order: OrderRead) -> dict[str, bool]:
        delivered = {
            "telegram": await send_telegram_message(render_order_message(order)),
            "email": await send_order_email(order),
        }
        logger.info("order.notified", extra={"order_id": order.id, "channels": delivered})
        return delivered
