# app/schemas/stats.py
from datetime import date, datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel

from app.schemas.common import Envelope
from app.schemas.order import OrderStatus


class DailySales(SQLModel):
    model_config = ConfigDict(extra="forbid")

    day: date
    total_revenue: float
    order_count: int


class TopProduct(SQLModel):
    """
    Best seller by units, counting only orders that were not cancelled.
    """
    model_config = ConfigDict(extra="forbid")

    product_id: int
    name: str
    total_quantity: int
    total_revenue: float


class LowStockProduct(SQLModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    name: str
    slug: str
    stock_quantity: int


class LatestOrderSummary(SQLModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    order_number: str
    created_at: datetime
    user_id: int
    shipping_recipient: str | None
    total_amount: float
    status: OrderStatus


class AdminDashboardStats(SQLModel):
    """
    Dashboard payload.

    Headline counters cover all time; `daily_sales` covers the requested
    month. `orders_by_status` lists every status, zero included.
    """
    model_config = ConfigDict(extra="forbid")

    total_customers: int
    total_orders: int
    total_products: int
    total_sales: float
    orders_by_status: dict[str, int]
    daily_sales: list[DailySales]
    top_products: list[TopProduct]
    low_stock: list[LowStockProduct]
    latest_orders: list[LatestOrderSummary]


class StatsResponse(Envelope):
    stats: AdminDashboardStats
