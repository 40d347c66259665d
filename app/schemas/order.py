# app/schemas/order.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.common import Envelope, PagedEnvelope

OrderStatus = Literal[
    "pending", "confirmed", "processing", "shipped", "completed", "cancelled"
]
PaymentStatus = Literal["pending", "paid", "refunded"]


class OrderCreate(SQLModel):
    """
    Payload for creating an order from the current cart.

    User provides:
      - shipping_address_id (must be one of their addresses)
      - billing_address_id (optional, defaults to the shipping address)
      - payment_method
      - notes (optional)

    Backend derives:
      - user_id from token
      - status / payment_status = 'pending'
      - subtotal, shipping, tax and total from the cart
      - items from cart
    """

    model_config = ConfigDict(extra="forbid")

    shipping_address_id: int
    billing_address_id: int | None = None
    payment_method: str = Field(max_length=50)
    notes: str | None = None

    @field_validator("payment_method")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: int
    product_id: int
    variant_id: int | None = None
    product_name: str
    variant_name: str | None = None
    image_url: str | None = None
    quantity: int
    unit_price: float
    total_price: float


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: int
    order_number: str
    user_id: int
    status: OrderStatus
    payment_method: str
    payment_status: PaymentStatus
    subtotal: float
    shipping_cost: float
    tax_amount: float
    total_amount: float
    shipping_address_id: int | None = None
    billing_address_id: int | None = None
    shipping_recipient: str | None = None
    shipping_phone: str | None = None
    shipping_address: str | None = None
    notes: str | None = None
    estimated_delivery: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    item_count: int = 0


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items.
    """

    items: list[OrderItemRead]


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus


class OrderResponse(Envelope):
    order: OrderWithItemsRead


class OrderListResponse(PagedEnvelope):
    orders: list[OrderRead]
