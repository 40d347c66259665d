# app/schemas/product.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.common import Envelope, PagedEnvelope

ProductSort = Literal[
    "created_at", "price", "final_price", "name", "rating", "review_count"
]
SortOrder = Literal["asc", "desc"]


class CategoryRead(SQLModel):
    id: int
    name: str
    slug: str
    parent_id: int | None = None
    image_url: str | None = None


class BrandRead(SQLModel):
    id: int
    name: str
    slug: str
    logo_url: str | None = None


class ProductImageRead(SQLModel):
    """
    Read model for gallery images.
    """

    id: int
    url: str
    alt_text: str | None = None
    sort_order: int
    is_primary: bool


class ProductVariantRead(SQLModel):
    """
    Variant as shown to shoppers.

    `final_price` is the product's final price plus this variant's adjustment.
    """

    id: int
    sku: str
    name: str
    value: str | None = None
    color: str | None = None
    size: str | None = None
    price_adjustment: float
    stock_quantity: int
    image_url: str | None = None
    final_price: float


class ProductRead(SQLModel):
    """
    Product representation for clients.

    `category` is the category slug and `brand` the brand name so list
    payloads can be filtered client-side without extra lookups.
    """

    id: int
    name: str
    slug: str
    description: str | None = None
    category_id: int | None = None
    category: str | None = None
    brand_id: int | None = None
    brand: str | None = None
    price: float
    discount_percent: int
    final_price: float
    stock_quantity: int
    rating: float
    review_count: int
    view_count: int
    tags: list[str] = []
    is_active: bool
    is_featured: bool
    image_url: str | None = None
    images: list[ProductImageRead] = []
    variants: list[ProductVariantRead] = []
    created_at: datetime


class ProductImageCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    url: str
    alt_text: str | None = None
    sort_order: int = 0
    is_primary: bool = False


class ProductVariantCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    sku: str = Field(max_length=100)
    name: str = Field(max_length=100)
    value: str | None = None
    color: str | None = None
    size: str | None = None
    price_adjustment: float = 0
    stock_quantity: int = Field(default=0, ge=0)
    image_url: str | None = None
    sort_order: int = 0

    @field_validator("sku", "name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ProductCreate(SQLModel):
    """
    Payload for creating a product.

    - slug is optional: if omitted, generated from `name`.
    - variants and images may be created inline.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    slug: str | None = None
    description: str | None = None
    category_id: int | None = None
    brand_id: int | None = None
    price: float = Field(gt=0)
    discount_percent: int = Field(default=0, ge=0, le=100)
    stock_quantity: int = Field(default=0, ge=0)
    tags: list[str] = []
    is_active: bool = True
    is_featured: bool = False
    images: list[ProductImageCreate] = []
    variants: list[ProductVariantCreate] = []

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("slug cannot be empty if provided")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    slug: str | None = None
    description: str | None = None
    category_id: int | None = None
    brand_id: int | None = None
    price: float | None = Field(default=None, gt=0)
    discount_percent: int | None = Field(default=None, ge=0, le=100)
    stock_quantity: int | None = Field(default=None, ge=0)
    tags: list[str] | None = None
    is_active: bool | None = None
    is_featured: bool | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("slug cannot be empty")
        return v


class ProductResponse(Envelope):
    product: ProductRead


class ProductListResponse(PagedEnvelope):
    products: list[ProductRead]


class FeaturedResponse(Envelope):
    count: int
    products: list[ProductRead]


class CategoryListResponse(Envelope):
    categories: list[CategoryRead]


class BrandListResponse(Envelope):
    brands: list[BrandRead]
