# app/schemas/cart.py
from sqlmodel import SQLModel, Field

from app.schemas.common import Envelope


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    product_id: int
    variant_id: int | None = None
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart item.
    """

    quantity: int = Field(gt=0)


class CartItemRead(SQLModel):
    """
    Read model for a single cart line, including line_total.

    `price` is the unit price captured when the line was last added to.
    """

    id: int
    product_id: int
    variant_id: int | None = None
    product_name: str
    product_slug: str | None = None
    variant_name: str | None = None
    image_url: str | None = None
    stock_quantity: int
    quantity: int
    price: float
    line_total: float


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    id: int
    items: list[CartItemRead]
    total_quantity: int
    subtotal: float


class CartResponse(Envelope):
    cart: CartSummary
