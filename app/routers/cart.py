# app/routers/cart.py
from fastapi import APIRouter, Depends, Request, Response
from sqlmodel import Session

from app.core.auth import get_current_user
from app.core.config import get_settings
from app.database import get_session
from app.models.cart import Cart
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartItemCreate, CartItemUpdate, CartResponse
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

settings = get_settings()
cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo)


def get_cart(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
) -> Cart:
    """
    Resolve the caller's cart.

    Auth:
      - Logged-in users get their own cart.
      - Guests are tracked with the session cookie; a new one is issued
        whenever the resolved cart's token differs from what was sent.
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    cart = service.resolve_cart(
        session,
        user_id=current_user.id if current_user else None,
        session_token=token,
    )
    if cart.session_id is not None and cart.session_id != token:
        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=cart.session_id,
            max_age=settings.SESSION_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60,
            httponly=True,
            samesite="lax",
        )
    return cart


@router.get("", response_model=CartResponse)
def get_my_cart(
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
):
    """
    Get the current cart summary (guest or user).
    """
    return CartResponse(cart=service.get_cart_summary(session, cart))


@router.post("/items", response_model=CartResponse)
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
):
    """
    Add a product (optionally a variant) to the cart.

    Returns the updated cart summary.
    """
    summary = service.add_line(session, cart, payload)
    return CartResponse(message="Item added to cart", cart=summary)


@router.put("/items/{item_id}", response_model=CartResponse)
def update_cart_item(
    item_id: int,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
):
    """
    Set the quantity of a cart line.

    Returns the updated cart summary.
    """
    summary = service.update_line(session, cart, item_id, payload)
    return CartResponse(message="Cart updated", cart=summary)


@router.delete("/items/{item_id}", response_model=CartResponse)
def remove_cart_item(
    item_id: int,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
):
    summary = service.remove_line(session, cart, item_id)
    return CartResponse(message="Item removed from cart", cart=summary)


@router.delete("/clear", response_model=CartResponse)
def clear_cart(
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
):
    """
    Clear the entire cart.

    Returns an empty cart summary.
    """
    summary = service.clear_cart(session, cart)
    return CartResponse(message="Cart cleared", cart=summary)
