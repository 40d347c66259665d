# app/repositories/cart_repo.py
from datetime import datetime, timezone

from sqlmodel import Session, select

from app.models.cart import Cart, CartItem


class CartRepository:
    """
    Data access for carts and cart lines.

    NOTE:
      - No commits here; cart mutations run inside the service's transaction.
    """

    # ---- Carts ----

    def get_by_user(self, session: Session, user_id: int) -> Cart | None:
        stmt = select(Cart).where(Cart.user_id == user_id)
        return session.exec(stmt).first()

    def get_by_session(self, session: Session, session_id: str) -> Cart | None:
        stmt = select(Cart).where(Cart.session_id == session_id)
        return session.exec(stmt).first()

    def create(self, session: Session, cart: Cart) -> Cart:
        session.add(cart)
        session.flush()  # Assign PK
        return cart

    def touch(self, session: Session, cart: Cart) -> None:
        cart.updated_at = datetime.now(timezone.utc)
        session.add(cart)

    # ---- Lines ----

    def list_items(self, session: Session, cart_id: int) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.cart_id == cart_id)
            .order_by(CartItem.created_at, CartItem.id)
        )
        return list(session.exec(stmt).all())

    def get_line(
        self,
        session: Session,
        cart_id: int,
        product_id: int,
        variant_id: int | None,
    ) -> CartItem | None:
        """The line for (cart, product, variant); a None variant matches only NULL."""
        stmt = select(CartItem).where(
            CartItem.cart_id == cart_id,
            CartItem.product_id == product_id,
        )
        if variant_id is None:
            stmt = stmt.where(CartItem.variant_id.is_(None))
        else:
            stmt = stmt.where(CartItem.variant_id == variant_id)
        return session.exec(stmt).first()

    def get_line_in_cart(
        self, session: Session, cart_id: int, item_id: int
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.id == item_id, CartItem.cart_id == cart_id
        )
        return session.exec(stmt).first()

    def add_line(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.flush()
        return item

    def save_line(self, session: Session, item: CartItem) -> CartItem:
        item.updated_at = datetime.now(timezone.utc)
        session.add(item)
        session.flush()
        return item

    def delete_line(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.flush()

    def clear(self, session: Session, cart_id: int) -> int:
        rows = self.list_items(session, cart_id)
        for row in rows:
            session.delete(row)
        session.flush()
        return len(rows)
