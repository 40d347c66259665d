# app/routers/addresses.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_auth
from app.database import get_session
from app.models.user import User
from app.repositories.address_repo import AddressRepository
from app.schemas.address import (
    AddressCreate,
    AddressListResponse,
    AddressRead,
    AddressResponse,
    AddressUpdate,
)
from app.schemas.common import Envelope
from app.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["Addresses"])

repo = AddressRepository()
service = AddressService(repo)


@router.get("", response_model=AddressListResponse)
def list_addresses(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    List the current user's addresses, default first.
    """
    rows = service.list_addresses(session, current_user.id)
    return AddressListResponse(
        count=len(rows),
        addresses=[AddressRead.model_validate(a) for a in rows],
    )


@router.post(
    "",
    response_model=AddressResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_address(
    payload: AddressCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    address = service.create_address(session, current_user.id, payload)
    return AddressResponse(
        message="Address added", address=AddressRead.model_validate(address)
    )


@router.put("/{address_id}", response_model=AddressResponse)
def update_address(
    address_id: int,
    payload: AddressUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    address = service.update_address(session, current_user.id, address_id, payload)
    return AddressResponse(
        message="Address updated", address=AddressRead.model_validate(address)
    )


@router.delete("/{address_id}", response_model=Envelope)
def delete_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Delete an address. Orders that used it keep their own text snapshot.
    """
    service.delete_address(session, current_user.id, address_id)
    return Envelope(message="Address deleted")
