# app/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Cart(SQLModel, table=True):
    """
    Shopping cart, keyed by exactly one of user_id / session_id.

    Created lazily on first access and emptied (never deleted) after checkout.
    """

    __tablename__ = "carts"

    id: int | None = Field(default=None, primary_key=True)

    user_id: int | None = Field(
        default=None,
        foreign_key="users.id",
        unique=True,
        index=True,
    )

    session_id: str | None = Field(
        default=None,
        unique=True,
        index=True,
        max_length=64,
        description="Opaque guest token carried in the session cookie",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class CartItem(SQLModel, table=True):
    """
    Cart line. One row per (cart, product, variant).
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", "variant_id", name="uq_cart_product_variant"),
    )

    id: int | None = Field(default=None, primary_key=True)

    cart_id: int = Field(foreign_key="carts.id", index=True)

    product_id: int = Field(foreign_key="products.id", index=True)

    variant_id: int | None = Field(default=None, foreign_key="product_variants.id")

    quantity: int = Field(
        gt=0,
        description="Must be >= 1",
    )

    price: float = Field(
        description="Unit price captured when the line was last added to",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
