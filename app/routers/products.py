# app/routers/products.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.product_repo import ProductFilters, ProductRepository
from app.schemas.common import Envelope, total_pages
from app.schemas.product import (
    BrandListResponse,
    BrandRead,
    CategoryListResponse,
    CategoryRead,
    FeaturedResponse,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductSort,
    ProductUpdate,
    SortOrder,
)
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo)


# -------- Public endpoints --------


@router.get("", response_model=ProductListResponse)
def list_products(
    session: Session = Depends(get_session),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    category: int | None = None,
    brand: int | None = None,
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    rating: float | None = Query(None, ge=0, le=5),
    in_stock: bool = False,
    on_sale: bool = False,
    featured: bool = False,
    search: str | None = None,
    sort_by: ProductSort = "created_at",
    sort_order: SortOrder = "desc",
):
    """
    List active products.

    - Public endpoint.
    - `category` / `brand` take ids; price bounds apply to the final
      (discounted) price; `search` matches name, description and brand name.
    """
    filters = ProductFilters(
        category_id=category,
        brand_id=brand,
        min_price=min_price,
        max_price=max_price,
        rating=rating,
        in_stock=in_stock,
        on_sale=on_sale,
        featured=featured,
        search=search,
    )
    products, count = service.list_products(
        session,
        filters,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ProductListResponse(
        count=count,
        totalPages=total_pages(count, limit),
        currentPage=page,
        products=products,
    )


@router.get("/featured", response_model=FeaturedResponse)
def featured_products(session: Session = Depends(get_session)):
    """
    Featured, in-stock products, newest first.
    """
    products = service.featured_products(session)
    return FeaturedResponse(count=len(products), products=products)


@router.get("/categories", response_model=CategoryListResponse)
def list_categories(session: Session = Depends(get_session)):
    rows = service.list_categories(session)
    return CategoryListResponse(
        categories=[CategoryRead.model_validate(c) for c in rows]
    )


@router.get("/brands", response_model=BrandListResponse)
def list_brands(session: Session = Depends(get_session)):
    rows = service.list_brands(session)
    return BrandListResponse(brands=[BrandRead.model_validate(b) for b in rows])


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    session: Session = Depends(get_session),
):
    """
    Get a single product with images and variants.

    - Public endpoint.
    - Each call increments the product's view count.
    """
    return ProductResponse(product=service.get_product(session, product_id))


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product (admin only).

    - If slug is omitted, it will be generated from `name`.
    - Variants and images may be sent inline.
    """
    product = service.create_product(session, payload)
    return ProductResponse(message="Product created", product=product)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Partially update a product (admin only).
    """
    product = service.update_product(session, product_id, payload)
    return ProductResponse(message="Product updated", product=product)


@router.delete(
    "/{product_id}",
    response_model=Envelope,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: int,
    session: Session = Depends(get_session),
):
    """
    Soft delete a product (admin only): it disappears from the catalog
    but stays referenced by existing orders.
    """
    service.delete_product(session, product_id)
    return Envelope(message="Product deleted")
