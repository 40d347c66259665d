from datetime import datetime, timezone

import pytest

from app.core.exceptions import ValidationError
from app.models.order import Order, OrderItem
from app.repositories.stats_repo import StatsRepository
from app.services.stats_service import StatsService, _month_bounds


@pytest.fixture
def service():
    return StatsService(StatsRepository())


@pytest.fixture
def make_order(session):
    counter = {"n": 0}

    def _make(user, product, quantity=1, status="pending", created_at=None):
        counter["n"] += 1
        total = product.price * quantity
        order = Order(
            order_number=f"ORD-TEST-{counter['n']}",
            user_id=user.id,
            status=status,
            payment_method="cod",
            subtotal=total,
            shipping_cost=0,
            tax_amount=0,
            total_amount=total,
            created_at=created_at or datetime.now(timezone.utc),
        )
        session.add(order)
        session.commit()
        session.add(
            OrderItem(
                order_id=order.id,
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price=product.price,
                total_price=total,
            )
        )
        session.commit()
        session.refresh(order)
        return order

    return _make


def test_cancelled_orders_do_not_count_as_sales(
    session, service, make_user, make_product, make_order
):
    user = make_user()
    kebaya = make_product(price=100000, name="Kebaya")
    sarong = make_product(price=50000, name="Sarong")
    make_order(user, kebaya, quantity=1)
    make_order(user, sarong, quantity=3, status="completed")
    make_order(user, kebaya, quantity=5, status="cancelled")

    stats = service.get_admin_dashboard_stats(session)

    assert stats.total_orders == 3
    assert stats.total_sales == 250000
    assert stats.orders_by_status["cancelled"] == 1
    assert stats.orders_by_status["shipped"] == 0
    assert [p.name for p in stats.top_products] == ["Sarong", "Kebaya"]
    assert stats.top_products[1].total_quantity == 1


def test_counts_ignore_admins_and_inactive_products(
    session, service, make_user, make_product
):
    make_user()
    make_user(role="admin")
    make_product()
    make_product(is_active=False)

    stats = service.get_admin_dashboard_stats(session)
    assert stats.total_customers == 1
    assert stats.total_products == 1


def test_low_stock_lists_active_products_at_threshold(session, service, make_product):
    make_product(stock_quantity=5, name="Five")
    make_product(stock_quantity=0, name="Empty")
    make_product(stock_quantity=6)
    make_product(stock_quantity=1, is_active=False)

    stats = service.get_admin_dashboard_stats(session)
    assert [p.name for p in stats.low_stock] == ["Empty", "Five"]


def test_daily_sales_only_cover_requested_month(
    session, service, make_user, make_product, make_order
):
    user = make_user()
    product = make_product(price=10000)
    make_order(user, product, created_at=datetime(2025, 3, 4, 10, tzinfo=timezone.utc))
    make_order(user, product, created_at=datetime(2025, 3, 4, 18, tzinfo=timezone.utc))
    make_order(user, product, created_at=datetime(2025, 4, 1, 9, tzinfo=timezone.utc))

    stats = service.get_admin_dashboard_stats(session, year=2025, month=3)

    (day,) = stats.daily_sales
    assert day.day.isoformat() == "2025-03-04"
    assert day.order_count == 2
    assert day.total_revenue == 20000


def test_december_window_rolls_into_next_year(
    session, service, make_user, make_product, make_order
):
    user = make_user()
    product = make_product(price=10000)
    make_order(user, product, created_at=datetime(2024, 12, 31, 23, tzinfo=timezone.utc))
    make_order(user, product, created_at=datetime(2025, 1, 1, 1, tzinfo=timezone.utc))

    stats = service.get_admin_dashboard_stats(session, year=2024, month=12)

    assert [d.day.isoformat() for d in stats.daily_sales] == ["2024-12-31"]


def test_month_bounds_are_utc_aware():
    start, end = _month_bounds(2024, 12)
    assert start == datetime(2024, 12, 1, tzinfo=timezone.utc)
    assert end == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert start.tzinfo is not None and end.tzinfo is not None


@pytest.mark.parametrize("month", [0, 13])
def test_month_out_of_range(session, service, month):
    with pytest.raises(ValidationError):
        service.get_admin_dashboard_stats(session, year=2025, month=month)
