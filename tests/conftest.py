"""
Pytest configuration and fixtures.

Every test runs against a fresh in-memory SQLite database; the app's
`get_session` dependency is overridden to use it.
"""
import os

# Settings are read at import time, so these must be set before `app` is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SEND_ORDER_EMAILS"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.auth import create_access_token, hash_password
from app.database import get_session
from app.main import app
from app.models.product import Brand, Category, Product, ProductImage, ProductVariant
from app.models.user import User, UserAddress

# One hash for every fixture user keeps bcrypt out of the hot path.
PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    """TestClient sharing the test's session. Lifespan is not run."""
    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---- factories ----


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(role: str = "customer", email: str | None = None, **fields) -> User:
        counter["n"] += 1
        user = User(
            name=fields.pop("name", f"User {counter['n']}"),
            email=email or f"user{counter['n']}@example.com",
            password_hash=PASSWORD_HASH,
            role=role,
            **fields,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(session):
    counter = {"n": 0}

    def _make(
        price: float = 100000,
        discount_percent: int = 0,
        stock_quantity: int = 10,
        **fields,
    ) -> Product:
        counter["n"] += 1
        product = Product(
            name=fields.pop("name", f"Product {counter['n']}"),
            slug=fields.pop("slug", f"product-{counter['n']}"),
            price=price,
            discount_percent=discount_percent,
            stock_quantity=stock_quantity,
            **fields,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_variant(session):
    counter = {"n": 0}

    def _make(
        product: Product,
        stock_quantity: int = 5,
        price_adjustment: float = 0,
        **fields,
    ) -> ProductVariant:
        counter["n"] += 1
        variant = ProductVariant(
            product_id=product.id,
            sku=fields.pop("sku", f"SKU-{counter['n']}"),
            name=fields.pop("name", f"Variant {counter['n']}"),
            stock_quantity=stock_quantity,
            price_adjustment=price_adjustment,
            **fields,
        )
        session.add(variant)
        session.commit()
        session.refresh(variant)
        return variant

    return _make


@pytest.fixture
def make_address(session):
    def _make(user: User, **fields) -> UserAddress:
        address = UserAddress(
            user_id=user.id,
            recipient_name=fields.pop("recipient_name", "Siti"),
            phone=fields.pop("phone", "08123456789"),
            address_line=fields.pop("address_line", "Jl. Merdeka 1"),
            city=fields.pop("city", "Jakarta"),
            province=fields.pop("province", "DKI Jakarta"),
            postal_code=fields.pop("postal_code", "10110"),
            **fields,
        )
        session.add(address)
        session.commit()
        session.refresh(address)
        return address

    return _make


@pytest.fixture
def catalog(session):
    """A category, a brand and one imaged product for API tests."""
    category = Category(name="Dresses", slug="dresses")
    brand = Brand(name="Batik Nusantara", slug="batik-nusantara")
    session.add(category)
    session.add(brand)
    session.commit()

    product = Product(
        name="Kebaya Modern",
        slug="kebaya-modern",
        description="Lace kebaya",
        category_id=category.id,
        brand_id=brand.id,
        price=100000,
        discount_percent=20,
        stock_quantity=10,
        tags=["lace", "formal"],
        is_featured=True,
    )
    session.add(product)
    session.commit()
    session.add(ProductImage(product_id=product.id, url="https://cdn.example/k.jpg", is_primary=True))
    session.add(
        ProductVariant(
            product_id=product.id,
            sku="KEB-RED-M",
            name="Red / M",
            color="Red",
            size="M",
            price_adjustment=5000,
            stock_quantity=3,
        )
    )
    session.commit()
    session.refresh(product)
    return {"category": category, "brand": brand, "product": product}


@pytest.fixture
def auth_headers():
    """Build a bearer header for a fixture user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers
