# app/repositories/address_repo.py
from sqlmodel import Session, select

from app.models.user import UserAddress


class AddressRepository:

    def list_for_user(self, session: Session, user_id: int) -> list[UserAddress]:
        stmt = (
            select(UserAddress)
            .where(UserAddress.user_id == user_id)
            .order_by(UserAddress.is_default.desc(), UserAddress.id)
        )
        return list(session.exec(stmt).all())

    def get_for_user(
        self, session: Session, address_id: int, user_id: int
    ) -> UserAddress | None:
        """Address by id, only if it belongs to `user_id`."""
        stmt = select(UserAddress).where(
            UserAddress.id == address_id, UserAddress.user_id == user_id
        )
        return session.exec(stmt).first()

    def clear_default(self, session: Session, user_id: int) -> None:
        for row in self.list_for_user(session, user_id):
            if row.is_default:
                row.is_default = False
                session.add(row)

    # No commits below; the service owns the transaction.
    def add(self, session: Session, address: UserAddress) -> UserAddress:
        session.add(address)
        session.flush()
        return address

    def delete(self, session: Session, address: UserAddress) -> None:
        session.delete(address)
        session.flush()
