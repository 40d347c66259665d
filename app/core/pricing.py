# app/core/pricing.py
"""
Money rules shared by the catalog, cart and checkout.

The store currency has no minor units, so every customer-visible amount
is rounded half-up to a whole unit.
"""
import secrets
import string
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP

from app.core.config import get_settings

ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
ORDER_SUFFIX_LENGTH = 9


def round_currency(amount: float) -> float:
    return float(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def final_price(price: float, discount_percent: int | None) -> float:
    """Catalog price after the product-level percentage discount."""
    if discount_percent and discount_percent > 0:
        return round_currency(price * (1 - discount_percent / 100))
    return price


def line_unit_price(
    price: float,
    discount_percent: int | None,
    price_adjustment: float | None = None,
) -> float:
    """
    Unit price captured on a cart line.

    Discount applies to the base price only; the variant delta is added
    on top before rounding.
    """
    discounted = price * (1 - (discount_percent or 0) / 100)
    return round_currency(discounted + (price_adjustment or 0))


def shipping_cost(subtotal: float) -> float:
    settings = get_settings()
    if subtotal > settings.FREE_SHIPPING_THRESHOLD:
        return 0.0
    return float(settings.FLAT_SHIPPING_FEE)


def tax_amount(subtotal: float) -> float:
    return round_currency(subtotal * get_settings().TAX_RATE)


def estimated_delivery(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(days=get_settings().ESTIMATED_DELIVERY_DAYS)


def generate_order_number() -> str:
    """
    Human-readable order number: ORD-<epoch millis>-<9 random chars>.

    Uniqueness is backed by the unique index on orders.order_number.
    """
    suffix = "".join(
        secrets.choice(ORDER_SUFFIX_ALPHABET) for _ in range(ORDER_SUFFIX_LENGTH)
    )
    return f"ORD-{int(time.time() * 1000)}-{suffix}"
