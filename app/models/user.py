# app/models/user.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Store account.

    Role:
      - "customer" | "admin"
      - guests have no row; their cart is keyed by a session cookie instead.

    Passwords are stored as bcrypt hashes only.
    """

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(max_length=100)

    email: str = Field(
        unique=True,
        index=True,
        max_length=255,
    )

    password_hash: str = Field(description="bcrypt hash")

    phone: str | None = Field(default=None, max_length=30)

    role: str = Field(
        default="customer",
        index=True,
        description="Application role: customer | admin",
    )

    is_active: bool = Field(default=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class UserAddress(SQLModel, table=True):
    """
    Shipping / billing address owned by a user.

    Orders only keep the id plus a text snapshot, so rows here can be
    edited or deleted freely.
    """

    __tablename__ = "user_addresses"

    id: int | None = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="users.id", index=True)

    label: str | None = Field(default=None, max_length=50)
    recipient_name: str = Field(max_length=100)
    phone: str = Field(max_length=30)
    address_line: str
    city: str = Field(max_length=100)
    province: str = Field(max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    country: str = Field(default="Indonesia", max_length=100)

    is_default: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
