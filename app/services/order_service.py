# app/services/order_service.py
import logging
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.exceptions import (
    EmptyCart,
    InsufficientStock,
    InvalidAddress,
    InvalidTransition,
    NotFound,
)
from app.core.pricing import (
    estimated_delivery,
    generate_order_number,
    round_currency,
    shipping_cost,
    tax_amount,
)
from app.database import atomic
from app.models.order import Order, OrderItem
from app.models.product import Product, ProductVariant
from app.models.cart import CartItem
from app.models.user import UserAddress
from app.repositories.address_repo import AddressRepository
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.order import (
    OrderCreate,
    OrderItemRead,
    OrderRead,
    OrderStatusUpdate,
    OrderWithItemsRead,
)

logger = logging.getLogger(__name__)

# Statuses a customer may still cancel from
CANCELLABLE_STATUSES = {"pending", "confirmed", "processing"}

# Admin state machine
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"confirmed", "processing", "cancelled"},
    "confirmed": {"processing", "shipped", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"completed"},
    "completed": set(),
    "cancelled": set(),
}


def _format_address(address: UserAddress) -> str:
    parts = [address.address_line, address.city]
    region = " ".join(p for p in (address.province, address.postal_code) if p)
    if region:
        parts.append(region)
    parts.append(address.country)
    return ", ".join(parts)


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Create order from cart in a single transaction
      - Re-check stock under row locks, then decrement it
      - Compute subtotal, shipping, tax and total
      - Empty the cart after success
      - Cancel orders (customer) and move them through the lifecycle (admin),
        restocking on cancellation
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        address_repo: AddressRepository,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.address_repo = address_repo

    # -------- User-facing operations --------

    def place_order(
        self,
        session: Session,
        user_id: int,
        payload: OrderCreate,
    ) -> OrderWithItemsRead:
        """
        Convert the user's cart into an Order.

        Steps (all-or-nothing):
          1. Load cart lines; EmptyCart if there are none.
          2. Validate shipping (and billing) address ownership.
          3. Lock and re-check stock of every line's variant/product.
          4. Compute subtotal from captured line prices, then shipping, tax, total.
          5. Decrement variant and product stock.
          6. Insert Order + OrderItem snapshot rows.
          7. Delete the cart lines (cart row stays).
        """
        cart = self.cart_repo.get_by_user(session, user_id)

        with atomic(session):
            # 1) Cart
            lines: list[CartItem] = (
                self.cart_repo.list_items(session, cart.id) if cart else []
            )
            if not lines:
                raise EmptyCart()

            # 2) Addresses
            shipping = self.address_repo.get_for_user(
                session, payload.shipping_address_id, user_id
            )
            if shipping is None:
                raise InvalidAddress("Invalid shipping address")

            billing_id = payload.billing_address_id or shipping.id
            if payload.billing_address_id is not None:
                billing = self.address_repo.get_for_user(
                    session, payload.billing_address_id, user_id
                )
                if billing is None:
                    raise InvalidAddress("Invalid billing address")

            # 3) Stock re-check; nothing is written until every line passes
            checked: list[tuple[CartItem, Product, ProductVariant | None]] = []
            demand: dict[int, int] = {}
            for line in lines:
                product = self.product_repo.get_for_update(session, line.product_id)
                if product is None:
                    raise NotFound("Product not found")

                variant = None
                if line.variant_id is not None:
                    variant = self.product_repo.get_variant_for_update(
                        session, line.variant_id
                    )
                    available = variant.stock_quantity if variant else 0
                else:
                    available = product.stock_quantity

                if available < line.quantity:
                    raise InsufficientStock(product.name, line.quantity, available)
                demand[product.id] = demand.get(product.id, 0) + line.quantity
                checked.append((line, product, variant))

            # Plain and variant lines of one product all draw on its stock
            for _, product, _ in checked:
                if product.stock_quantity < demand[product.id]:
                    raise InsufficientStock(
                        product.name, demand[product.id], product.stock_quantity
                    )

            # 4) Totals
            line_totals = [round_currency(line.price * line.quantity) for line in lines]
            subtotal = sum(line_totals)
            shipping_fee = shipping_cost(subtotal)
            tax = tax_amount(subtotal)
            total = subtotal + shipping_fee + tax

            # 5) Decrement stock
            for line, product, variant in checked:
                if variant is not None:
                    variant.stock_quantity -= line.quantity
                    session.add(variant)
                product.stock_quantity -= line.quantity
                session.add(product)

            # 6) Order + items
            now = datetime.now(timezone.utc)
            order = Order(
                order_number=generate_order_number(),
                user_id=user_id,
                status="pending",
                payment_method=payload.payment_method,
                payment_status="pending",
                subtotal=subtotal,
                shipping_cost=shipping_fee,
                tax_amount=tax,
                total_amount=total,
                shipping_address_id=shipping.id,
                billing_address_id=billing_id,
                shipping_recipient=shipping.recipient_name,
                shipping_phone=shipping.phone,
                shipping_address=_format_address(shipping),
                notes=payload.notes,
                estimated_delivery=estimated_delivery(now),
                created_at=now,
                updated_at=now,
            )
            order = self.order_repo.create_order(session, order)

            order_items: list[OrderItem] = []
            for (line, product, variant), line_total in zip(checked, line_totals):
                image_url = variant.image_url if variant and variant.image_url else None
                if image_url is None:
                    image_url = self.product_repo.primary_image_url(session, product.id)
                order_items.append(
                    OrderItem(
                        order_id=order.id,
                        product_id=product.id,
                        variant_id=line.variant_id,
                        product_name=product.name,
                        variant_name=variant.name if variant else None,
                        image_url=image_url,
                        quantity=line.quantity,
                        unit_price=line.price,
                        total_price=line_total,
                    )
                )
            self.order_repo.create_items(session, order_items)

            # 7) Empty the cart
            self.cart_repo.clear(session, cart.id)
            self.cart_repo.touch(session, cart)

        logger.info(
            "Order %s placed by user %s: %s items, total %s",
            order.order_number,
            user_id,
            len(order_items),
            total,
        )
        return self._build_order_with_items_dto(order, order_items)

    def list_user_orders(
        self,
        session: Session,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
    ) -> tuple[list[OrderRead], int]:
        """
        List orders for the given user (without items), newest first.
        """
        orders, total = self.order_repo.list_for_user(
            session, user_id, skip=(page - 1) * limit, limit=limit, status=status
        )
        return [self._build_order_dto(session, o) for o in orders], total

    def get_user_order(
        self,
        session: Session,
        user_id: int,
        order_id: int,
    ) -> OrderWithItemsRead:
        """
        Get a single order for the user, including items.

        - NotFound if order not found or does not belong to this user.
        """
        order = self.order_repo.get_for_user(session, order_id, user_id)
        if not order:
            raise NotFound("Order not found")

        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)

    def cancel_order(
        self,
        session: Session,
        user_id: int,
        order_id: int,
    ) -> OrderWithItemsRead:
        """
        Cancel one of the user's own orders and put its stock back.

        Unknown ids, other users' orders and orders past `processing` all
        fail the same way, with InvalidTransition.
        """
        with atomic(session):
            order = self.order_repo.get_for_update(session, order_id)
            if (
                order is None
                or order.user_id != user_id
                or order.status not in CANCELLABLE_STATUSES
            ):
                raise InvalidTransition("Order cannot be cancelled")

            items = self._restock(session, order)
            self._mark_cancelled(session, order)

        logger.info("Order %s cancelled by user %s", order.order_number, user_id)
        return self._build_order_with_items_dto(order, items)

    # -------- Admin operations --------

    def list_all_orders(
        self,
        session: Session,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
    ) -> tuple[list[OrderRead], int]:
        """
        List all orders (admin only).
        """
        orders, total = self.order_repo.list_all(
            session, skip=(page - 1) * limit, limit=limit, status=status
        )
        return [self._build_order_dto(session, o) for o in orders], total

    def get_order_admin(
        self,
        session: Session,
        order_id: int,
    ) -> OrderWithItemsRead:
        """
        Get any order with items (admin only).
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFound("Order not found")
        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)

    def update_status(
        self,
        session: Session,
        order_id: int,
        payload: OrderStatusUpdate,
    ) -> OrderWithItemsRead:
        """
        Admin-only status update following ALLOWED_TRANSITIONS.

        Moving to `cancelled` restocks exactly like a customer cancellation.
        Any invalid transition raises InvalidTransition.
        """
        with atomic(session):
            order = self.order_repo.get_for_update(session, order_id)
            if not order:
                raise NotFound("Order not found")

            current = order.status
            new = payload.status

            if current != new:
                if new not in ALLOWED_TRANSITIONS.get(current, set()):
                    raise InvalidTransition(
                        f"Invalid status transition: {current} -> {new}"
                    )

                if new == "cancelled":
                    self._restock(session, order)
                    self._mark_cancelled(session, order)
                else:
                    order.status = new
                    order.updated_at = datetime.now(timezone.utc)
                    self.order_repo.update_order(session, order)
                logger.info("Order %s: %s -> %s", order.order_number, current, new)

        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)

    # -------- Helpers --------

    def _restock(self, session: Session, order: Order) -> list[OrderItem]:
        """Inverse of the placement decrement. Caller owns the transaction."""
        items = self.order_repo.list_items_for_order(session, order.id)
        for it in items:
            if it.variant_id is not None:
                variant = self.product_repo.get_variant_for_update(session, it.variant_id)
                if variant is not None:
                    variant.stock_quantity += it.quantity
                    session.add(variant)
            product = self.product_repo.get_for_update(session, it.product_id)
            if product is not None:
                product.stock_quantity += it.quantity
                session.add(product)
        return items

    def _mark_cancelled(self, session: Session, order: Order) -> None:
        now = datetime.now(timezone.utc)
        order.status = "cancelled"
        order.cancelled_at = now
        order.updated_at = now
        self.order_repo.update_order(session, order)

    def _build_order_dto(self, session: Session, order: Order) -> OrderRead:
        return OrderRead.model_validate(
            order,
            update={"item_count": self.order_repo.count_items(session, order.id)},
        )

    def _build_order_with_items_dto(
        self,
        order: Order,
        items: list[OrderItem],
    ) -> OrderWithItemsRead:
        """
        Compose OrderWithItemsRead from ORM models. Money fields come from the
        order row as stored at checkout.
        """
        item_dtos = [
            OrderItemRead(
                id=it.id,
                product_id=it.product_id,
                variant_id=it.variant_id,
                product_name=it.product_name,
                variant_name=it.variant_name,
                image_url=it.image_url,
                quantity=it.quantity,
                unit_price=it.unit_price,
                total_price=it.total_price,
            )
            for it in items
        ]

        return OrderWithItemsRead.model_validate(
            order,
            update={"items": item_dtos, "item_count": len(item_dtos)},
        )
