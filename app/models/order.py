# app/models/order.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order.

    Money fields and the shipping_* text are frozen at checkout and never
    recomputed. Address ids are plain references (no FK) so the address
    book can change without touching historical orders.
    """

    __tablename__ = "orders"

    id: int | None = Field(default=None, primary_key=True)

    order_number: str = Field(
        max_length=40,
        unique=True,
        index=True,
    )

    user_id: int = Field(
        foreign_key="users.id",
        index=True,
    )

    # pending | confirmed | processing | shipped | completed | cancelled
    status: str = Field(
        default="pending",
        index=True,
        description="Order status lifecycle",
    )

    payment_method: str = Field(max_length=50)
    # pending | paid | refunded
    payment_status: str = Field(default="pending", max_length=20)

    subtotal: float
    shipping_cost: float
    tax_amount: float
    total_amount: float = Field(
        description="subtotal + shipping_cost + tax_amount",
    )

    shipping_address_id: int | None = Field(default=None, index=True)
    billing_address_id: int | None = Field(default=None)

    shipping_recipient: str | None = None
    shipping_phone: str | None = None
    shipping_address: str | None = Field(
        default=None,
        description="Formatted address text at checkout time",
    )

    notes: str | None = None

    estimated_delivery: datetime | None = None
    cancelled_at: datetime | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order.

    Display fields are copied from the catalog at checkout so the order
    keeps reading the same after products are edited.
    """

    __tablename__ = "order_items"

    id: int | None = Field(default=None, primary_key=True)

    order_id: int = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: int = Field(
        foreign_key="products.id",
        index=True,
    )
    variant_id: int | None = Field(default=None, foreign_key="product_variants.id")

    product_name: str
    variant_name: str | None = None
    image_url: str | None = None

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    unit_price: float = Field(
        description="Unit price at time of order (pre-tax)",
    )
    total_price: float = Field(
        description="unit_price * quantity",
    )
