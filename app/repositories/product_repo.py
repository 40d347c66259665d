# app/repositories/product_repo.py
from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlmodel import Session, select

from app.models.product import Brand, Category, Product, ProductImage, ProductVariant


@dataclass
class ProductFilters:
    category_id: int | None = None
    brand_id: int | None = None
    min_price: float | None = None
    max_price: float | None = None
    rating: float | None = None
    in_stock: bool = False
    on_sale: bool = False
    featured: bool = False
    search: str | None = None


# SQL mirror of app.core.pricing.final_price (unrounded, used for filter/sort only)
FINAL_PRICE_EXPR = Product.price * (1 - Product.discount_percent / 100.0)

SORT_COLUMNS = {
    "created_at": Product.created_at,
    "price": Product.price,
    "final_price": FINAL_PRICE_EXPR,
    "name": Product.name,
    "rating": Product.rating,
    "review_count": Product.review_count,
}


class ProductRepository:
    """
    Data access layer for the catalog: products, variants, images,
    categories and brands.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: int) -> Product | None:
        return session.get(Product, product_id)

    def get_for_update(self, session: Session, product_id: int) -> Product | None:
        """Load a product row with a write lock held until the transaction ends."""
        stmt = select(Product).where(Product.id == product_id).with_for_update()
        return session.exec(stmt).first()

    def get_by_slug(self, session: Session, slug: str) -> Product | None:
        stmt = select(Product).where(Product.slug == slug)
        return session.exec(stmt).first()

    def _apply_filters(self, stmt, filters: ProductFilters):
        stmt = stmt.where(Product.is_active == True)  # noqa: E712
        if filters.category_id is not None:
            stmt = stmt.where(Product.category_id == filters.category_id)
        if filters.brand_id is not None:
            stmt = stmt.where(Product.brand_id == filters.brand_id)
        if filters.min_price is not None:
            stmt = stmt.where(FINAL_PRICE_EXPR >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(FINAL_PRICE_EXPR <= filters.max_price)
        if filters.rating is not None:
            stmt = stmt.where(Product.rating >= filters.rating)
        if filters.in_stock:
            stmt = stmt.where(Product.stock_quantity > 0)
        if filters.on_sale:
            stmt = stmt.where(Product.discount_percent > 0)
        if filters.featured:
            stmt = stmt.where(Product.is_featured == True)  # noqa: E712
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            stmt = stmt.outerjoin(Brand, Brand.id == Product.brand_id).where(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Brand.name.ilike(pattern),
                )
            )
        return stmt

    def search(
        self,
        session: Session,
        filters: ProductFilters,
        sort_by: str = "created_at",
        descending: bool = True,
        skip: int = 0,
        limit: int = 12,
    ) -> tuple[list[Product], int]:
        """Filtered page of active products plus the total match count."""
        count_stmt = self._apply_filters(
            select(func.count()).select_from(Product), filters
        )
        total = session.exec(count_stmt).one()

        column = SORT_COLUMNS.get(sort_by, Product.created_at)
        order = column.desc() if descending else column.asc()
        stmt = (
            self._apply_filters(select(Product), filters)
            .order_by(order, Product.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all()), int(total or 0)

    def list_featured(self, session: Session, limit: int = 8) -> list[Product]:
        stmt = (
            select(Product)
            .where(
                Product.is_featured == True,  # noqa: E712
                Product.is_active == True,  # noqa: E712
                Product.stock_quantity > 0,
            )
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def add(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.flush()
        return product

    def save(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    # ----- Variants -----

    def get_variant(self, session: Session, variant_id: int) -> ProductVariant | None:
        return session.get(ProductVariant, variant_id)

    def get_variant_for_update(
        self, session: Session, variant_id: int
    ) -> ProductVariant | None:
        stmt = (
            select(ProductVariant)
            .where(ProductVariant.id == variant_id)
            .with_for_update()
        )
        return session.exec(stmt).first()

    def list_variants_for_products(
        self, session: Session, product_ids: list[int]
    ) -> list[ProductVariant]:
        if not product_ids:
            return []
        stmt = (
            select(ProductVariant)
            .where(ProductVariant.product_id.in_(product_ids))
            .order_by(ProductVariant.sort_order, ProductVariant.id)
        )
        return list(session.exec(stmt).all())

    # ----- Images -----

    def list_images(self, session: Session, product_id: int) -> list[ProductImage]:
        stmt = (
            select(ProductImage)
            .where(ProductImage.product_id == product_id)
            .order_by(ProductImage.is_primary.desc(), ProductImage.sort_order)
        )
        return list(session.exec(stmt).all())

    def list_images_for_products(
        self, session: Session, product_ids: list[int]
    ) -> list[ProductImage]:
        if not product_ids:
            return []
        stmt = (
            select(ProductImage)
            .where(ProductImage.product_id.in_(product_ids))
            .order_by(ProductImage.is_primary.desc(), ProductImage.sort_order)
        )
        return list(session.exec(stmt).all())

    def primary_image_url(self, session: Session, product_id: int) -> str | None:
        images = self.list_images(session, product_id)
        return images[0].url if images else None

    # ----- Categories / brands -----

    def get_category(self, session: Session, category_id: int) -> Category | None:
        return session.get(Category, category_id)

    def get_brand(self, session: Session, brand_id: int) -> Brand | None:
        return session.get(Brand, brand_id)

    def list_categories(self, session: Session) -> list[Category]:
        stmt = (
            select(Category)
            .where(Category.is_active == True)  # noqa: E712
            .order_by(Category.sort_order, Category.name)
        )
        return list(session.exec(stmt).all())

    def list_brands(self, session: Session) -> list[Brand]:
        stmt = (
            select(Brand)
            .where(Brand.is_active == True)  # noqa: E712
            .order_by(Brand.name)
        )
        return list(session.exec(stmt).all())
