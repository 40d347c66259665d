# app/services/stats_service.py
import logging
from datetime import date, datetime, timezone
from typing import get_args

from sqlmodel import Session

from app.core.config import get_settings
from app.core.exceptions import ValidationError
from app.repositories.stats_repo import StatsRepository
from app.schemas.order import OrderStatus
from app.schemas.stats import (
    AdminDashboardStats,
    DailySales,
    LatestOrderSummary,
    LowStockProduct,
    TopProduct,
)

logger = logging.getLogger(__name__)

settings = get_settings()


def _month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    # Stored timestamps are UTC-aware, so the bounds must be too
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        return start, datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    return start, datetime(year, month + 1, 1, tzinfo=timezone.utc)


def _as_date(value) -> date:
    # Postgres returns a date, SQLite an ISO string
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class StatsService:
    def __init__(self, repo: StatsRepository):
        self.repo = repo

    def get_admin_dashboard_stats(
        self,
        session: Session,
        year: int | None = None,
        month: int | None = None,
        top_n_products: int = 5,
        latest_n_orders: int = 5,
    ) -> AdminDashboardStats:
        """
        Build the dashboard for `year`/`month` (default: the current UTC month).

        Raises:
            ValidationError: month outside 1..12.
        """
        today = datetime.now(timezone.utc).date()
        if year is None:
            year = today.year
        if month is None:
            month = today.month
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12", field="month")

        start, end = _month_bounds(year, month)
        logger.debug("Dashboard stats for %04d-%02d", year, month)

        counts = self.repo.orders_by_status(session)
        by_status = {s: counts.get(s, 0) for s in get_args(OrderStatus)}

        return AdminDashboardStats(
            total_customers=self.repo.count_customers(session),
            total_orders=self.repo.count_orders(session),
            total_products=self.repo.count_products(session),
            total_sales=self.repo.total_revenue(session),
            orders_by_status=by_status,
            daily_sales=[
                DailySales(
                    day=_as_date(day),
                    total_revenue=float(revenue or 0),
                    order_count=int(n or 0),
                )
                for day, revenue, n in self.repo.daily_sales(session, start, end)
            ],
            top_products=[
                TopProduct(
                    product_id=pid,
                    name=name,
                    total_quantity=int(qty or 0),
                    total_revenue=float(revenue or 0),
                )
                for pid, name, qty, revenue in self.repo.top_products(
                    session, limit=top_n_products
                )
            ],
            low_stock=[
                LowStockProduct.model_validate(p)
                for p in self.repo.low_stock_products(
                    session, settings.LOW_STOCK_THRESHOLD
                )
            ],
            latest_orders=[
                LatestOrderSummary.model_validate(o)
                for o in self.repo.latest_orders(session, limit=latest_n_orders)
            ],
        )
