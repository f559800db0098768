from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation


# ASCII digits only; other scripts' numerals are not weights.
_NUMBER_RE = re.compile(r"[0-9.]+")

_KILO_MARKERS = ("кг", "kg")


def _round_ratio(numerator: int, denominator: int) -> int:
    """Exact half-up rounding of ``numerator / denominator`` for ``denominator > 0``."""
    sign = -1 if numerator < 0 else 1
    return sign * ((2 * abs(numerator) + denominator) // (2 * denominator))


def round_half_up(value: Decimal | int | str) -> int:
    """Round to the nearest whole currency/gram unit, halves away from zero.

    Works on the exact integer ratio of ``value``, so arbitrarily large
    amounts round without hitting the decimal context precision.
    """
    numerator, denominator = Decimal(value).as_integer_ratio()
    return _round_ratio(numerator, denominator)


def _parse_number(label: str) -> Decimal | None:
    match = _NUMBER_RE.search(label)
    if not match:
        return None
    try:
        value = Decimal(match.group(0))
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_weight_grams(weight: str | None) -> int:
    """Convert a weight label such as ``"1.2 кг"`` or ``"350 г"`` to whole grams.

    Millilitres count as grams. Labels without a number, or with a number that
    does not parse, give ``0``; the function never raises.
    """
    normalized = (weight if isinstance(weight, str) else "").lower().replace(",", ".", 1)
    value = _parse_number(normalized)
    if value is None:
        return 0
    numerator, denominator = value.as_integer_ratio()
    if any(marker in normalized for marker in _KILO_MARKERS):
        return _round_ratio(numerator * 1000, denominator)
    # grams, millilitres and unlabelled numbers are all taken as grams
    return _round_ratio(numerator, denominator)


def has_known_weight(weight: str | None) -> bool:
    return parse_weight_grams(weight) > 0


def get_price_per_kg(price: int, base_weight_grams: int) -> int:
    if base_weight_grams <= 0:
        return 0
    return _round_ratio(int(price) * 1000, int(base_weight_grams))


def get_subtotal(price: int, base_weight_grams: int, selected_grams: int) -> int:
    """Price of ``selected_grams`` of a product sold at ``price`` per ``base_weight_grams``."""
    if base_weight_grams <= 0:
        return 0
    return _round_ratio(int(price) * int(selected_grams), int(base_weight_grams))


def format_grams(grams: int) -> str:
    return f"{grams} г"
