# app/schemas/common.py
import math

from sqlmodel import SQLModel


class Envelope(SQLModel):
    """
    Standard response wrapper: `{success, message?, <resource>}`.

    Resource schemas subclass this and add their own payload field.
    """

    success: bool = True
    message: str | None = None


class PagedEnvelope(Envelope):
    """
    List envelope. Counter names are camelCase on the wire.
    """

    count: int
    totalPages: int
    currentPage: int


def total_pages(count: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(count / limit)
