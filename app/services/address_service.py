# app/services/address_service.py
from sqlmodel import Session

from app.core.exceptions import NotFound
from app.database import atomic
from app.models.user import UserAddress
from app.repositories.address_repo import AddressRepository
from app.schemas.address import AddressCreate, AddressUpdate


class AddressService:
    """
    Address book for a user.

    At most one address per user is the default. The first address a user
    saves becomes the default automatically.
    """

    def __init__(self, repo: AddressRepository):
        self.repo = repo

    def list_addresses(self, session: Session, user_id: int) -> list[UserAddress]:
        return self.repo.list_for_user(session, user_id)

    def get_address(self, session: Session, user_id: int, address_id: int) -> UserAddress:
        address = self.repo.get_for_user(session, address_id, user_id)
        if address is None:
            raise NotFound("Address not found")
        return address

    def create_address(
        self,
        session: Session,
        user_id: int,
        payload: AddressCreate,
    ) -> UserAddress:
        with atomic(session):
            is_first = not self.repo.list_for_user(session, user_id)
            make_default = payload.is_default or is_first
            if make_default:
                self.repo.clear_default(session, user_id)

            address = UserAddress(
                user_id=user_id,
                **payload.model_dump(exclude={"is_default"}),
                is_default=make_default,
            )
            self.repo.add(session, address)

        session.refresh(address)
        return address

    def update_address(
        self,
        session: Session,
        user_id: int,
        address_id: int,
        payload: AddressUpdate,
    ) -> UserAddress:
        with atomic(session):
            address = self.get_address(session, user_id, address_id)
            changes = payload.model_dump(exclude_unset=True)

            if "is_default" in changes:
                make_default = changes.pop("is_default")
                if make_default:
                    self.repo.clear_default(session, user_id)
                    address.is_default = True
                elif make_default is False:
                    address.is_default = False

            for key, value in changes.items():
                if value is not None:
                    setattr(address, key, value)
            session.add(address)

        session.refresh(address)
        return address

    def delete_address(self, session: Session, user_id: int, address_id: int) -> None:
        """
        Delete an address. Orders keep their own text snapshot, so nothing
        else changes. If the default is removed, the oldest remaining
        address takes over.
        """
        with atomic(session):
            address = self.get_address(session, user_id, address_id)
            was_default = address.is_default
            self.repo.delete(session, address)

            if was_default:
                remaining = sorted(
                    self.repo.list_for_user(session, user_id), key=lambda a: a.id
                )
                if remaining:
                    remaining[0].is_default = True
                    session.add(remaining[0])
