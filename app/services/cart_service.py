# app/services/cart_service.py
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.exceptions import InsufficientStock, InvalidReference, NotFound
from app.core.pricing import line_unit_price
from app.database import atomic
from app.models.cart import Cart, CartItem
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import (
    CartItemCreate,
    CartItemRead,
    CartItemUpdate,
    CartSummary,
)

logger = logging.getLogger(__name__)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - resolve the cart for a user or an anonymous session token
      - validate product / variant references
      - enforce requested quantity <= effective stock
      - capture the unit price on the line (last write wins on repeat add)
      - compute line totals and cart totals
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- cart resolution ----

    def _find_or_create(self, session: Session, *, user_id=None, session_id=None) -> Cart:
        def lookup() -> Cart | None:
            if user_id is not None:
                return self.cart_repo.get_by_user(session, user_id)
            return self.cart_repo.get_by_session(session, session_id)

        cart = lookup()
        if cart is not None:
            return cart

        try:
            cart = self.cart_repo.create(
                session, Cart(user_id=user_id, session_id=session_id)
            )
            session.commit()
        except IntegrityError:
            # another request created it between our read and insert
            session.rollback()
            cart = lookup()
            if cart is None:
                raise
        return cart

    def resolve_cart(
        self,
        session: Session,
        user_id: int | None = None,
        session_token: str | None = None,
    ) -> Cart:
        """
        Find or create the caller's cart.

        - Authenticated users get the cart keyed by user id.
        - Guests with a session token get the cart keyed by that token.
        - Guests without a token get a fresh token and a new cart; the
          caller must hand `cart.session_id` back to the client.
        """
        if user_id is not None:
            return self._find_or_create(session, user_id=user_id)
        if session_token:
            return self._find_or_create(session, session_id=session_token)
        return self._find_or_create(session, session_id=uuid.uuid4().hex)

    # ---- read ----

    def get_cart_summary(self, session: Session, cart: Cart) -> CartSummary:
        """
        Return full cart summary:
          - list of CartItemRead (with line_total)
          - total_quantity
          - subtotal (sum of captured price * quantity)
        """
        items = self.cart_repo.list_items(session, cart.id)

        item_reads: list[CartItemRead] = []
        total_qty = 0
        subtotal = 0.0

        for it in items:
            product = self.product_repo.get_by_id(session, it.product_id)
            variant = (
                self.product_repo.get_variant(session, it.variant_id)
                if it.variant_id is not None
                else None
            )
            if variant is not None:
                stock = variant.stock_quantity
            else:
                stock = product.stock_quantity if product else 0

            image_url = variant.image_url if variant and variant.image_url else None
            if image_url is None and product is not None:
                image_url = self.product_repo.primary_image_url(session, product.id)

            line_total = it.quantity * it.price
            total_qty += it.quantity
            subtotal += line_total

            item_reads.append(
                CartItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    variant_id=it.variant_id,
                    product_name=product.name if product else "Unavailable product",
                    product_slug=product.slug if product else None,
                    variant_name=variant.name if variant else None,
                    image_url=image_url,
                    stock_quantity=stock,
                    quantity=it.quantity,
                    price=it.price,
                    line_total=line_total,
                )
            )

        return CartSummary(
            id=cart.id,
            items=item_reads,
            total_quantity=total_qty,
            subtotal=subtotal,
        )

    # ---- mutations ----

    def add_line(
        self,
        session: Session,
        cart: Cart,
        payload: CartItemCreate,
    ) -> CartSummary:
        """
        Add a product (optionally a specific variant) to the cart.

        Rules:
          - product must exist and be active (NotFound)
          - variant, if given, must belong to the product (InvalidReference)
          - requested quantity <= variant stock, or product stock without a variant
          - an existing (product, variant) line has its quantity increased and
            its price replaced with the current one
        """
        with atomic(session):
            product = self.product_repo.get_for_update(session, payload.product_id)
            if product is None or not product.is_active:
                raise NotFound("Product not found")

            variant = None
            if payload.variant_id is not None:
                variant = self.product_repo.get_variant_for_update(
                    session, payload.variant_id
                )
                if variant is None or variant.product_id != product.id:
                    raise InvalidReference("Variant does not belong to this product")

            available = variant.stock_quantity if variant else product.stock_quantity
            if available < payload.quantity:
                raise InsufficientStock(product.name, payload.quantity, available)

            price = line_unit_price(
                product.price,
                product.discount_percent,
                variant.price_adjustment if variant else None,
            )

            line = self.cart_repo.get_line(
                session, cart.id, product.id, payload.variant_id
            )
            if line is not None:
                line.quantity += payload.quantity
                line.price = price
                self.cart_repo.save_line(session, line)
            else:
                self.cart_repo.add_line(
                    session,
                    CartItem(
                        cart_id=cart.id,
                        product_id=product.id,
                        variant_id=payload.variant_id,
                        quantity=payload.quantity,
                        price=price,
                    ),
                )
            self.cart_repo.touch(session, cart)

        logger.info(
            "Cart %s: added product %s variant %s x%s",
            cart.id,
            payload.product_id,
            payload.variant_id,
            payload.quantity,
        )
        return self.get_cart_summary(session, cart)

    def update_line(
        self,
        session: Session,
        cart: Cart,
        item_id: int,
        payload: CartItemUpdate,
    ) -> CartSummary:
        """
        Set the quantity of a line in this cart.

        Stock is re-checked against the line's own variant/product. The
        captured price is left unchanged.
        """
        with atomic(session):
            line = self.cart_repo.get_line_in_cart(session, cart.id, item_id)
            if line is None:
                raise NotFound("Cart item not found")

            product = self.product_repo.get_for_update(session, line.product_id)
            name = product.name if product else None
            if line.variant_id is not None:
                variant = self.product_repo.get_variant_for_update(session, line.variant_id)
                available = variant.stock_quantity if variant else 0
            else:
                available = product.stock_quantity if product else 0

            if available < payload.quantity:
                raise InsufficientStock(name, payload.quantity, available)

            line.quantity = payload.quantity
            self.cart_repo.save_line(session, line)
            self.cart_repo.touch(session, cart)

        return self.get_cart_summary(session, cart)

    def remove_line(self, session: Session, cart: Cart, item_id: int) -> CartSummary:
        """
        Remove one named line from the cart.

        Raises:
            NotFound: if the line is not in this cart.
        """
        with atomic(session):
            line = self.cart_repo.get_line_in_cart(session, cart.id, item_id)
            if line is None:
                raise NotFound("Cart item not found")
            self.cart_repo.delete_line(session, line)
            self.cart_repo.touch(session, cart)

        return self.get_cart_summary(session, cart)

    def clear_cart(self, session: Session, cart: Cart) -> CartSummary:
        """
        Remove every line. Clearing an empty cart is a no-op.
        """
        with atomic(session):
            removed = self.cart_repo.clear(session, cart.id)
            self.cart_repo.touch(session, cart)

        logger.info("Cart %s cleared (%s lines)", cart.id, removed)
        return CartSummary(id=cart.id, items=[], total_quantity=0, subtotal=0.0)
