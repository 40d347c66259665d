# app/repositories/order_repo.py
from sqlalchemy import func
from sqlmodel import Session, select

from app.models.order import Order, OrderItem


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits here; order creation is a multi-step transaction.
        The service owns the transaction boundary.
    """

    # ---- Orders ----

    def list_for_user(
        self,
        session: Session,
        user_id: int,
        skip: int = 0,
        limit: int = 10,
        status: str | None = None,
    ) -> tuple[list[Order], int]:
        base = select(Order).where(Order.user_id == user_id)
        count_stmt = select(func.count()).select_from(Order).where(Order.user_id == user_id)
        if status:
            base = base.where(Order.status == status)
            count_stmt = count_stmt.where(Order.status == status)

        stmt = base.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit)
        total = session.exec(count_stmt).one()
        return list(session.exec(stmt).all()), int(total or 0)

    def list_all(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 20,
        status: str | None = None,
    ) -> tuple[list[Order], int]:
        base = select(Order)
        count_stmt = select(func.count()).select_from(Order)
        if status:
            base = base.where(Order.status == status)
            count_stmt = count_stmt.where(Order.status == status)

        stmt = base.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit)
        total = session.exec(count_stmt).one()
        return list(session.exec(stmt).all()), int(total or 0)

    def get_by_id(self, session: Session, order_id: int) -> Order | None:
        return session.get(Order, order_id)

    def get_for_user(self, session: Session, order_id: int, user_id: int) -> Order | None:
        stmt = select(Order).where(Order.id == order_id, Order.user_id == user_id)
        return session.exec(stmt).first()

    def get_for_update(self, session: Session, order_id: int) -> Order | None:
        stmt = select(Order).where(Order.id == order_id).with_for_update()
        return session.exec(stmt).first()

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()  # Assign PK
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.flush()
        return order

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: int,
    ) -> list[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        return list(session.exec(stmt).all())

    def count_items(self, session: Session, order_id: int) -> int:
        stmt = select(func.count()).select_from(OrderItem).where(OrderItem.order_id == order_id)
        return int(session.exec(stmt).one() or 0)

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        return items
