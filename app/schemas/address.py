# app/schemas/address.py
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.common import Envelope


class AddressCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    label: str | None = Field(default=None, max_length=50)
    recipient_name: str = Field(max_length=100)
    phone: str = Field(max_length=30)
    address_line: str
    city: str = Field(max_length=100)
    province: str = Field(max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    country: str = Field(default="Indonesia", max_length=100)
    is_default: bool = False

    @field_validator("recipient_name", "phone", "address_line", "city", "province")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class AddressUpdate(SQLModel):
    """
    Partial update. Setting is_default=true clears the flag on the
    user's other addresses.
    """

    model_config = ConfigDict(extra="forbid")

    label: str | None = Field(default=None, max_length=50)
    recipient_name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    address_line: str | None = None
    city: str | None = Field(default=None, max_length=100)
    province: str | None = Field(default=None, max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    is_default: bool | None = None

    @field_validator("recipient_name", "phone", "address_line", "city", "province")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class AddressRead(SQLModel):
    id: int
    label: str | None
    recipient_name: str
    phone: str
    address_line: str
    city: str
    province: str
    postal_code: str | None
    country: str
    is_default: bool
    created_at: datetime


class AddressResponse(Envelope):
    address: AddressRead


class AddressListResponse(Envelope):
    count: int
    addresses: list[AddressRead]
