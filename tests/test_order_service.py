import pytest
from sqlmodel import select

from app.core.exceptions import (
    EmptyCart,
    InsufficientStock,
    InvalidAddress,
    InvalidReference,
    InvalidTransition,
    NotFound,
)
from app.models.cart import CartItem
from app.models.order import Order, OrderItem
from app.repositories.address_repo import AddressRepository
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartItemCreate
from app.schemas.order import OrderCreate, OrderStatusUpdate
from app.services.cart_service import CartService
from app.services.order_service import OrderService


@pytest.fixture
def carts():
    return CartService(CartRepository(), ProductRepository())


@pytest.fixture
def orders():
    return OrderService(
        OrderRepository(), CartRepository(), ProductRepository(), AddressRepository()
    )


@pytest.fixture
def shopper(session, make_user, make_address):
    user = make_user()
    address = make_address(user)
    return user, address


def _fill_cart(session, carts, user, *lines):
    cart = carts.resolve_cart(session, user_id=user.id)
    for product_id, variant_id, quantity in lines:
        carts.add_line(
            session,
            cart,
            CartItemCreate(product_id=product_id, variant_id=variant_id, quantity=quantity),
        )
    return cart


def _order_count(session):
    return len(session.exec(select(Order)).all())


def test_checkout_scenario_totals(session, carts, orders, shopper, make_product):
    user, address = shopper
    product = make_product(price=100000, discount_percent=20, stock_quantity=10)
    cart = _fill_cart(session, carts, user, (product.id, None, 2))

    order = orders.place_order(
        session,
        user.id,
        OrderCreate(shipping_address_id=address.id, payment_method="bank_transfer"),
    )

    assert order.subtotal == 160000
    assert order.shipping_cost == 15000
    assert order.tax_amount == 17600
    assert order.total_amount == 192600
    assert order.status == "pending"
    assert order.payment_status == "pending"
    assert order.order_number.startswith("ORD-")
    assert order.billing_address_id == address.id
    assert order.shipping_recipient == address.recipient_name
    assert order.estimated_delivery is not None

    session.refresh(product)
    assert product.stock_quantity == 8
    assert session.exec(select(CartItem).where(CartItem.cart_id == cart.id)).all() == []


def test_total_equals_items_plus_shipping_plus_tax(
    session, carts, orders, shopper, make_product, make_variant
):
    user, address = shopper
    a = make_product(price=125000, discount_percent=10, stock_quantity=5)
    b = make_product(price=99999, discount_percent=15, stock_quantity=5)
    v = make_variant(b, price_adjustment=2500, stock_quantity=5)
    _fill_cart(session, carts, user, (a.id, None, 3), (b.id, v.id, 2))

    order = orders.place_order(
        session,
        user.id,
        OrderCreate(shipping_address_id=address.id, payment_method="cod"),
    )

    items = session.exec(select(OrderItem).where(OrderItem.order_id == order.id)).all()
    assert len(items) == 2
    assert order.total_amount == (
        sum(it.total_price for it in items) + order.shipping_cost + order.tax_amount
    )
    # above the threshold
    assert order.shipping_cost == 0


def test_empty_cart_cannot_be_ordered(session, orders, shopper):
    user, address = shopper
    with pytest.raises(EmptyCart):
        orders.place_order(
            session,
            user.id,
            OrderCreate(shipping_address_id=address.id, payment_method="cod"),
        )


def test_address_of_another_user_is_rejected(
    session, carts, orders, shopper, make_user, make_address, make_product
):
    user, _ = shopper
    stranger_address = make_address(make_user())
    product = make_product()
    _fill_cart(session, carts, user, (product.id, None, 1))

    with pytest.raises(InvalidAddress) as exc:
        orders.place_order(
            session,
            user.id,
            OrderCreate(shipping_address_id=stranger_address.id, payment_method="cod"),
        )
    assert isinstance(exc.value, InvalidReference)
    assert _order_count(session) == 0


def test_billing_address_must_belong_to_user(
    session, carts, orders, shopper, make_user, make_address, make_product
):
    user, address = shopper
    stranger_address = make_address(make_user())
    _fill_cart(session, carts, user, (make_product().id, None, 1))

    with pytest.raises(InvalidAddress):
        orders.place_order(
            session,
            user.id,
            OrderCreate(
                shipping_address_id=address.id,
                billing_address_id=stranger_address.id,
                payment_method="cod",
            ),
        )


def test_place_order_is_all_or_nothing(
    session, carts, orders, shopper, make_product
):
    user, address = shopper
    plenty = make_product(stock_quantity=10)
    scarce = make_product(stock_quantity=5, name="Songket")
    cart = _fill_cart(session, carts, user, (plenty.id, None, 2), (scarce.id, None, 3))

    # stock drops after the item went into the cart
    scarce.stock_quantity = 1
    session.add(scarce)
    session.commit()

    with pytest.raises(InsufficientStock) as exc:
        orders.place_order(
            session,
            user.id,
            OrderCreate(shipping_address_id=address.id, payment_method="cod"),
        )
    assert exc.value.message == "Insufficient stock for Songket"

    session.refresh(plenty)
    session.refresh(scarce)
    assert plenty.stock_quantity == 10
    assert scarce.stock_quantity == 1
    assert _order_count(session) == 0
    assert session.exec(select(OrderItem)).all() == []
    assert len(session.exec(select(CartItem).where(CartItem.cart_id == cart.id)).all()) == 2


def test_variant_line_decrements_variant_and_product(
    session, carts, orders, shopper, make_product, make_variant
):
    user, address = shopper
    product = make_product(stock_quantity=10)
    variant = make_variant(product, stock_quantity=4)
    _fill_cart(session, carts, user, (product.id, variant.id, 3))

    order = orders.place_order(
        session,
        user.id,
        OrderCreate(shipping_address_id=address.id, payment_method="cod"),
    )

    session.refresh(product)
    session.refresh(variant)
    assert product.stock_quantity == 7
    assert variant.stock_quantity == 1
    assert order.items[0].variant_name == variant.name


def test_plain_and_variant_lines_share_product_stock(
    session, carts, orders, shopper, make_product, make_variant
):
    user, address = shopper
    product = make_product(stock_quantity=3, name="Kain Tenun")
    variant = make_variant(product, stock_quantity=5)
    _fill_cart(session, carts, user, (product.id, None, 3), (product.id, variant.id, 2))

    with pytest.raises(InsufficientStock) as exc:
        orders.place_order(
            session,
            user.id,
            OrderCreate(shipping_address_id=address.id, payment_method="cod"),
        )
    assert exc.value.requested == 5
    assert exc.value.available == 3

    session.refresh(product)
    session.refresh(variant)
    assert product.stock_quantity == 3
    assert variant.stock_quantity == 5
    assert _order_count(session) == 0


def test_cancel_restores_stock(
    session, carts, orders, shopper, make_product, make_variant
):
    user, address = shopper
    product = make_product(stock_quantity=10)
    variant = make_variant(product, stock_quantity=4)
    plain = make_product(stock_quantity=6)
    _fill_cart(session, carts, user, (product.id, variant.id, 2), (plain.id, None, 5))

    order = orders.place_order(
        session,
        user.id,
        OrderCreate(shipping_address_id=address.id, payment_method="cod"),
    )
    cancelled = orders.cancel_order(session, user.id, order.id)

    assert cancelled.status == "cancelled"
    assert cancelled.cancelled_at is not None
    for row in (product, variant, plain):
        session.refresh(row)
    assert product.stock_quantity == 10
    assert variant.stock_quantity == 4
    assert plain.stock_quantity == 6


@pytest.mark.parametrize("status", ["shipped", "completed", "cancelled"])
def test_cancel_after_processing_is_invalid(
    session, carts, orders, shopper, make_product, status
):
    user, address = shopper
    product = make_product(stock_quantity=10)
    _fill_cart(session, carts, user, (product.id, None, 2))
    placed = orders.place_order(
        session,
        user.id,
        OrderCreate(shipping_address_id=address.id, payment_method="cod"),
    )

    order = session.get(Order, placed.id)
    order.status = status
    session.add(order)
    session.commit()

    with pytest.raises(InvalidTransition):
        orders.cancel_order(session, user.id, placed.id)

    session.refresh(order)
    session.refresh(product)
    assert order.status == status
    assert order.cancelled_at is None
    assert product.stock_quantity == 8


def test_cancel_other_users_order_is_invalid(
    session, carts, orders, shopper, make_user, make_product
):
    user, address = shopper
    _fill_cart(session, carts, user, (make_product().id, None, 1))
    placed = orders.place_order(
        session,
        user.id,
        OrderCreate(shipping_address_id=address.id, payment_method="cod"),
    )

    with pytest.raises(InvalidTransition):
        orders.cancel_order(session, make_user().id, placed.id)
    with pytest.raises(InvalidTransition):
        orders.cancel_order(session, user.id, 9999)


def test_user_order_reads_are_scoped(
    session, carts, orders, shopper, make_user, make_product
):
    user, address = shopper
    _fill_cart(session, carts, user, (make_product().id, None, 1))
    placed = orders.place_order(
        session,
        user.id,
        OrderCreate(shipping_address_id=address.id, payment_method="cod"),
    )

    listed, total = orders.list_user_orders(session, user.id)
    assert total == 1
    assert listed[0].item_count == 1
    assert orders.get_user_order(session, user.id, placed.id).id == placed.id

    with pytest.raises(NotFound):
        orders.get_user_order(session, make_user().id, placed.id)


def test_admin_status_follows_lifecycle(
    session, carts, orders, shopper, make_product
):
    user, address = shopper
    product = make_product(stock_quantity=5)
    _fill_cart(session, carts, user, (product.id, None, 2))
    placed = orders.place_order(
        session,
        user.id,
        OrderCreate(shipping_address_id=address.id, payment_method="cod"),
    )

    with pytest.raises(InvalidTransition):
        orders.update_status(session, placed.id, OrderStatusUpdate(status="completed"))

    assert orders.update_status(
        session, placed.id, OrderStatusUpdate(status="processing")
    ).status == "processing"

    cancelled = orders.update_status(
        session, placed.id, OrderStatusUpdate(status="cancelled")
    )
    assert cancelled.status == "cancelled"
    session.refresh(product)
    assert product.stock_quantity == 5

    with pytest.raises(InvalidTransition):
        orders.update_status(session, placed.id, OrderStatusUpdate(status="pending"))
