# app/models/product.py
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from app.core.pricing import final_price


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    slug: str = Field(max_length=120, unique=True, index=True)
    parent_id: int | None = Field(default=None, foreign_key="categories.id")
    image_url: str | None = None
    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True, index=True)


class Brand(SQLModel, table=True):
    __tablename__ = "brands"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    slug: str = Field(max_length=120, unique=True, index=True)
    logo_url: str | None = None
    is_active: bool = Field(default=True, index=True)


class Product(SQLModel, table=True):
    """
    Product catalog entry.

    `stock_quantity` is the aggregate counter; when a product has variants
    each variant keeps its own counter and checkout moves both together.
    Deleting a product only flips `is_active`.
    """

    __tablename__ = "products"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name",
    )

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    description: str | None = None

    category_id: int | None = Field(default=None, foreign_key="categories.id", index=True)
    brand_id: int | None = Field(default=None, foreign_key="brands.id", index=True)

    price: float = Field(ge=0, description="Base unit price before discount")

    discount_percent: int = Field(default=0, ge=0, le=100)

    stock_quantity: int = Field(default=0)

    rating: float = Field(default=0.0)
    review_count: int = Field(default=0)
    view_count: int = Field(default=0)

    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))

    is_active: bool = Field(default=True, index=True)
    is_featured: bool = Field(default=False, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @property
    def final_price(self) -> float:
        return final_price(self.price, self.discount_percent)


class ProductImage(SQLModel, table=True):
    """
    Gallery images for a product.
    """

    __tablename__ = "product_images"

    id: int | None = Field(default=None, primary_key=True)

    product_id: int = Field(foreign_key="products.id", index=True)

    url: str
    alt_text: str | None = None

    sort_order: int = Field(default=0, ge=0)
    is_primary: bool = Field(default=False)


class ProductVariant(SQLModel, table=True):
    """
    Sellable configuration of a product (color/size).

    Price is the product's discounted price plus `price_adjustment`.
    """

    __tablename__ = "product_variants"

    id: int | None = Field(default=None, primary_key=True)

    product_id: int = Field(foreign_key="products.id", index=True)

    sku: str = Field(max_length=64, unique=True, index=True)
    name: str = Field(max_length=100, description="e.g. 'Black / M'")
    value: str | None = Field(default=None, max_length=100)
    color: str | None = Field(default=None, max_length=50)
    size: str | None = Field(default=None, max_length=20)

    price_adjustment: float = Field(default=0)
    stock_quantity: int = Field(default=0)

    image_url: str | None = None
    sort_order: int = Field(default=0)
