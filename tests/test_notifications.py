import smtplib
from datetime import datetime

from app.schemas.order import OrderItemRead, OrderWithItemsRead
from app.services import notification_service
from app.services.notification_service import NotificationService


def _order():
    return OrderWithItemsRead(
        id=1,
        order_number="ORD-1700000000000-ABC123XYZ",
        user_id=1,
        status="pending",
        payment_method="cod",
        payment_status="pending",
        subtotal=160000,
        shipping_cost=15000,
        tax_amount=17600,
        total_amount=192600,
        estimated_delivery=datetime(2026, 1, 6),
        created_at=datetime(2026, 1, 1),
        item_count=1,
        items=[
            OrderItemRead(
                id=1,
                product_id=1,
                variant_id=None,
                product_name="Kebaya Modern",
                quantity=2,
                unit_price=80000,
                total_price=160000,
            )
        ],
    )


def test_confirmation_email_lists_items_and_totals(monkeypatch):
    sent = {}

    def fake_send(**kwargs):
        sent.update(kwargs)

    monkeypatch.setattr(notification_service, "send_email", fake_send)

    ok = NotificationService().send_order_confirmation("siti@example.com", "Siti", _order())

    assert ok is True
    assert sent["to_email"] == "siti@example.com"
    assert "ORD-1700000000000-ABC123XYZ" in sent["subject"]
    assert "2 x Kebaya Modern - Rp 160.000" in sent["text_body"]
    assert "Total: Rp 192.600" in sent["text_body"]
    assert "06 January 2026" in sent["text_body"]


def test_confirmation_email_failure_is_reported_not_raised(monkeypatch):
    def broken_send(**kwargs):
        raise smtplib.SMTPException("relay refused")

    monkeypatch.setattr(notification_service, "send_email", broken_send)

    assert NotificationService().send_order_confirmation("a@b.c", "A", _order()) is False
