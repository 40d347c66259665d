# app/repositories/stats_repo.py
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.user import User
from app.models.order import Order, OrderItem
from app.models.product import Product

# Revenue never counts orders that were cancelled
NOT_CANCELLED = Order.status != "cancelled"


class StatsRepository:
    """
    Read-only aggregates for the admin dashboard. Nothing here writes.
    """

    def _count(self, session: Session, model, *criteria) -> int:
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return int(session.exec(stmt).one() or 0)

    def count_customers(self, session: Session) -> int:
        return self._count(session, User, User.role == "customer")

    def count_orders(self, session: Session) -> int:
        return self._count(session, Order)

    def count_products(self, session: Session) -> int:
        return self._count(session, Product, Product.is_active == True)  # noqa: E712

    def total_revenue(self, session: Session) -> float:
        stmt = select(func.coalesce(func.sum(Order.total_amount), 0.0)).where(
            NOT_CANCELLED
        )
        return float(session.exec(stmt).one() or 0.0)

    def orders_by_status(self, session: Session) -> dict[str, int]:
        stmt = select(Order.status, func.count(Order.id)).group_by(Order.status)
        return {status: int(n) for status, n in session.exec(stmt).all()}

    def daily_sales(
        self,
        session: Session,
        start: datetime,
        end: datetime,
    ) -> list[tuple]:
        """
        (day, revenue, order_count) rows for created_at in [start, end),
        one per day that had at least one non-cancelled order.
        """
        # date() exists on both Postgres and SQLite
        day = func.date(Order.created_at)
        stmt = (
            select(
                day.label("day"),
                func.sum(Order.total_amount).label("revenue"),
                func.count(Order.id).label("order_count"),
            )
            .where(NOT_CANCELLED, Order.created_at >= start, Order.created_at < end)
            .group_by(day)
            .order_by(day)
        )
        return list(session.exec(stmt).all())

    def top_products(self, session: Session, limit: int = 5) -> list[tuple]:
        """(product_id, name, quantity, revenue) by quantity sold."""
        quantity = func.sum(OrderItem.quantity)
        stmt = (
            select(
                OrderItem.product_id,
                Product.name,
                quantity.label("total_quantity"),
                func.sum(OrderItem.total_price).label("total_revenue"),
            )
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(NOT_CANCELLED)
            .group_by(OrderItem.product_id, Product.name)
            .order_by(quantity.desc(), OrderItem.product_id)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def low_stock_products(
        self, session: Session, threshold: int, limit: int = 10
    ) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.is_active == True, Product.stock_quantity <= threshold)  # noqa: E712
            .order_by(Product.stock_quantity, Product.id)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def latest_orders(self, session: Session, limit: int = 5) -> list[Order]:
        stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
        return list(session.exec(stmt).all())
