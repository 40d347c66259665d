# app/services/product_service.py
import logging
import re
from datetime import datetime, timezone

from fastapi import status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.config import get_settings
from app.core.exceptions import InvalidReference, NotFound, ValidationError
from app.core.pricing import round_currency
from app.database import atomic
from app.models.product import (
    Brand,
    Category,
    Product,
    ProductImage,
    ProductVariant,
)
from app.repositories.product_repo import ProductFilters, ProductRepository
from app.schemas.product import (
    ProductCreate,
    ProductImageRead,
    ProductRead,
    ProductUpdate,
    ProductVariantRead,
)

logger = logging.getLogger(__name__)
settings = get_settings()


class ProductService:
    """
    Business logic for the catalog.

    Responsibilities:
      - slug generation & uniqueness
      - shaping products into read models (final price, images, variants)
      - view counting on detail reads
      - admin-only operations (enforced at router via require_admin)
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def _slugify(raw: str) -> str:
        """
        Basic slugification:
          - lowercase
          - non-alphanumeric -> '-'
          - collapse multiple '-'
          - strip leading/trailing '-'
        """
        value = raw.strip().lower()
        value = re.sub(r"[^a-z0-9]+", "-", value)
        value = re.sub(r"-+", "-", value)
        value = value.strip("-")
        return value or "product"

    def _ensure_unique_slug(self, session: Session, base_slug: str) -> str:
        """
        Ensure slug is unique by appending -2, -3, ... if needed.
        """
        slug = base_slug
        i = 2
        while self.repo.get_by_slug(session, slug) is not None:
            slug = f"{base_slug}-{i}"
            i += 1
        return slug

    def _check_references(
        self,
        session: Session,
        category_id: int | None,
        brand_id: int | None,
    ) -> None:
        if category_id is not None and self.repo.get_category(session, category_id) is None:
            raise InvalidReference("Category not found")
        if brand_id is not None and self.repo.get_brand(session, brand_id) is None:
            raise InvalidReference("Brand not found")

    def _to_read(
        self,
        product: Product,
        images: list[ProductImage],
        variants: list[ProductVariant],
        category: Category | None,
        brand: Brand | None,
    ) -> ProductRead:
        base_final = product.final_price
        return ProductRead(
            id=product.id,
            name=product.name,
            slug=product.slug,
            description=product.description,
            category_id=product.category_id,
            category=category.slug if category else None,
            brand_id=product.brand_id,
            brand=brand.name if brand else None,
            price=product.price,
            discount_percent=product.discount_percent,
            final_price=base_final,
            stock_quantity=product.stock_quantity,
            rating=product.rating,
            review_count=product.review_count,
            view_count=product.view_count,
            tags=list(product.tags or []),
            is_active=product.is_active,
            is_featured=product.is_featured,
            image_url=images[0].url if images else None,
            images=[
                ProductImageRead(
                    id=img.id,
                    url=img.url,
                    alt_text=img.alt_text,
                    sort_order=img.sort_order,
                    is_primary=img.is_primary,
                )
                for img in images
            ],
            variants=[
                ProductVariantRead(
                    id=v.id,
                    sku=v.sku,
                    name=v.name,
                    value=v.value,
                    color=v.color,
                    size=v.size,
                    price_adjustment=v.price_adjustment,
                    stock_quantity=v.stock_quantity,
                    image_url=v.image_url,
                    final_price=round_currency(base_final + (v.price_adjustment or 0)),
                )
                for v in variants
            ],
            created_at=product.created_at,
        )

    def _to_reads(self, session: Session, products: list[Product]) -> list[ProductRead]:
        """Batch-load images, variants, categories and brands for a page."""
        ids = [p.id for p in products]
        images_by_product: dict[int, list[ProductImage]] = {}
        for img in self.repo.list_images_for_products(session, ids):
            images_by_product.setdefault(img.product_id, []).append(img)
        variants_by_product: dict[int, list[ProductVariant]] = {}
        for v in self.repo.list_variants_for_products(session, ids):
            variants_by_product.setdefault(v.product_id, []).append(v)

        categories: dict[int, Category | None] = {}
        brands: dict[int, Brand | None] = {}
        for p in products:
            if p.category_id is not None and p.category_id not in categories:
                categories[p.category_id] = self.repo.get_category(session, p.category_id)
            if p.brand_id is not None and p.brand_id not in brands:
                brands[p.brand_id] = self.repo.get_brand(session, p.brand_id)

        return [
            self._to_read(
                p,
                images_by_product.get(p.id, []),
                variants_by_product.get(p.id, []),
                categories.get(p.category_id) if p.category_id is not None else None,
                brands.get(p.brand_id) if p.brand_id is not None else None,
            )
            for p in products
        ]

    # ----- Public catalog -----

    def list_products(
        self,
        session: Session,
        filters: ProductFilters,
        page: int = 1,
        limit: int = 12,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[list[ProductRead], int]:
        """Return one page of active products and the total match count."""
        skip = (page - 1) * limit
        products, total = self.repo.search(
            session,
            filters,
            sort_by=sort_by,
            descending=sort_order != "asc",
            skip=skip,
            limit=limit,
        )
        return self._to_reads(session, products), total

    def get_product(self, session: Session, product_id: int) -> ProductRead:
        """
        Product detail with images and variants.

        Inactive products are hidden. Each read bumps view_count.
        """
        product = self.repo.get_by_id(session, product_id)
        if product is None or not product.is_active:
            raise NotFound("Product not found")

        product.view_count = (product.view_count or 0) + 1
        product = self.repo.save(session, product)

        return self._to_reads(session, [product])[0]

    def featured_products(self, session: Session) -> list[ProductRead]:
        products = self.repo.list_featured(session, limit=settings.FEATURED_LIMIT)
        return self._to_reads(session, products)

    def list_categories(self, session: Session) -> list[Category]:
        return self.repo.list_categories(session)

    def list_brands(self, session: Session) -> list[Brand]:
        return self.repo.list_brands(session)

    # ----- Admin -----

    def create_product(
        self,
        session: Session,
        payload: ProductCreate,
    ) -> ProductRead:
        """
        Create a new product with a unique slug, plus inline variants/images.

        - If slug is provided => slugify & ensure unique.
        - Else => slugify from name & ensure unique.
        """
        self._check_references(session, payload.category_id, payload.brand_id)

        raw_slug = payload.slug or payload.name
        slug = self._ensure_unique_slug(session, self._slugify(raw_slug))

        try:
            with atomic(session):
                product = Product(
                    name=payload.name,
                    slug=slug,
                    description=payload.description,
                    category_id=payload.category_id,
                    brand_id=payload.brand_id,
                    price=payload.price,
                    discount_percent=payload.discount_percent,
                    stock_quantity=payload.stock_quantity,
                    tags=payload.tags,
                    is_active=payload.is_active,
                    is_featured=payload.is_featured,
                )
                self.repo.add(session, product)

                for img in payload.images:
                    session.add(ProductImage(product_id=product.id, **img.model_dump()))
                for variant in payload.variants:
                    session.add(ProductVariant(product_id=product.id, **variant.model_dump()))
        except IntegrityError:
            raise ValidationError(
                "Product slug or variant SKU already exists",
                status_code=status.HTTP_409_CONFLICT,
            )

        logger.info("Created product %s (%s)", product.id, product.slug)
        session.refresh(product)
        return self._to_reads(session, [product])[0]

    def update_product(
        self,
        session: Session,
        product_id: int,
        payload: ProductUpdate,
    ) -> ProductRead:
        """
        Partial update of a product.

        - If slug is changed, enforce uniqueness.
        """
        product = self.repo.get_by_id(session, product_id)
        if product is None:
            raise NotFound("Product not found")

        changes = payload.model_dump(exclude_unset=True)
        self._check_references(
            session, changes.get("category_id"), changes.get("brand_id")
        )

        slug = changes.pop("slug", None)
        if slug is not None:
            new_base_slug = self._slugify(slug)
            if new_base_slug != product.slug:
                product.slug = self._ensure_unique_slug(session, new_base_slug)

        for key, value in changes.items():
            if value is None and key not in {"category_id", "brand_id", "description"}:
                continue
            setattr(product, key, value)

        product.updated_at = datetime.now(timezone.utc)
        product = self.repo.save(session, product)
        return self._to_reads(session, [product])[0]

    def delete_product(self, session: Session, product_id: int) -> None:
        """
        Soft delete: the row stays so order history keeps resolving.
        """
        product = self.repo.get_by_id(session, product_id)
        if product is None:
            raise NotFound("Product not found")

        product.is_active = False
        product.updated_at = datetime.now(timezone.utc)
        self.repo.save(session, product)
        logger.info("Deactivated product %s", product_id)
