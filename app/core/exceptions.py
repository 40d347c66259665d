# app/core/exceptions.py
"""
Store error taxonomy.

Services raise these; `app.core.exception_handlers` turns them into the
standard `{success: false, message, code}` envelope with the matching
HTTP status.
"""
from fastapi import status


class StoreError(Exception):
    """Base class for every error surfaced to API clients."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message = message or self.default_message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class NotFound(StoreError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InvalidReference(StoreError):
    """A referenced row exists but does not belong where it was used."""

    default_message = "Invalid reference"


class InvalidAddress(InvalidReference):
    default_message = "Invalid shipping address"


class InsufficientStock(StoreError):
    default_message = "Insufficient stock"

    def __init__(
        self,
        product_name: str | None = None,
        requested: int | None = None,
        available: int | None = None,
    ):
        message = (
            f"Insufficient stock for {product_name}" if product_name else None
        )
        super().__init__(message)
        self.product_name = product_name
        self.requested = requested
        self.available = available


class EmptyCart(StoreError):
    default_message = "Cart is empty"


class InvalidTransition(StoreError):
    default_message = "Invalid order status transition"


class Unauthorized(StoreError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized to access this route"


class Forbidden(StoreError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class ValidationError(StoreError):
    default_message = "Invalid request"

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.field = field
        if status_code is not None:
            self.status_code = status_code


class ServerError(StoreError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"
