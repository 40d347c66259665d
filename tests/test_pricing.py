import re
from datetime import datetime, timedelta, timezone

from app.core.pricing import (
    estimated_delivery,
    final_price,
    generate_order_number,
    line_unit_price,
    round_currency,
    shipping_cost,
    tax_amount,
)


def test_round_currency_is_half_up():
    assert round_currency(2.5) == 3
    assert round_currency(3.5) == 4
    assert round_currency(84999.15) == 84999


def test_final_price_without_discount_is_price():
    assert final_price(100000, 0) == 100000
    assert final_price(100000, None) == 100000


def test_final_price_with_discount_is_rounded():
    assert final_price(100000, 20) == 80000
    assert final_price(99999, 15) == 84999
    assert final_price(5, 50) == 3


def test_line_unit_price_adds_variant_adjustment_after_discount():
    assert line_unit_price(100000, 20) == 80000
    assert line_unit_price(100000, 20, 5000) == 85000
    assert line_unit_price(100000, 0, -10000) == 90000


def test_shipping_is_free_only_above_threshold():
    assert shipping_cost(160000) == 15000
    assert shipping_cost(300000) == 15000
    assert shipping_cost(300001) == 0


def test_tax_is_eleven_percent_rounded():
    assert tax_amount(160000) == 17600
    assert tax_amount(100000) == 11000


def test_order_number_format():
    number = generate_order_number()
    assert re.fullmatch(r"ORD-\d{13}-[A-Z0-9]{9}", number)
    assert generate_order_number() != number


def test_estimated_delivery_is_five_days_out():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert estimated_delivery(now) == now + timedelta(days=5)
