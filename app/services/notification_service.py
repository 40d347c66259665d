# app/services/notification_service.py
import logging
import smtplib

from app.core.email_client import send_email
from app.schemas.order import OrderWithItemsRead

logger = logging.getLogger(__name__)


def _format_amount(amount: float) -> str:
    # Rp 192.600
    return "Rp " + f"{amount:,.0f}".replace(",", ".")


class NotificationService:
    """
    Customer-facing notifications.

    Called from FastAPI BackgroundTasks after the order transaction has
    committed, so it only receives plain DTOs, never ORM rows.
    """

    def send_order_confirmation(
        self,
        to_email: str,
        customer_name: str,
        order: OrderWithItemsRead,
    ) -> bool:
        """
        Email an order summary. Failures are logged and swallowed: the
        order is already placed and must not be affected.
        """
        lines = [
            f"{it.quantity} x {it.product_name}"
            + (f" ({it.variant_name})" if it.variant_name else "")
            + f" - {_format_amount(it.total_price)}"
            for it in order.items
        ]
        text_body = "\n".join(
            [
                f"Hi {customer_name},",
                "",
                f"Thanks for your order {order.order_number}.",
                "",
                *lines,
                "",
                f"Subtotal: {_format_amount(order.subtotal)}",
                f"Shipping: {_format_amount(order.shipping_cost)}",
                f"Tax: {_format_amount(order.tax_amount)}",
                f"Total: {_format_amount(order.total_amount)}",
            ]
        )
        if order.estimated_delivery:
            text_body += (
                f"\n\nEstimated delivery: {order.estimated_delivery:%d %B %Y}"
            )

        try:
            send_email(
                to_email=to_email,
                subject=f"[Shalura] Order {order.order_number} received",
                text_body=text_body,
            )
        except (RuntimeError, smtplib.SMTPException, OSError):
            logger.exception(
                "Order confirmation email failed for %s", order.order_number
            )
            return False
        return True
