# app/routers/orders.py
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_admin, require_auth
from app.core.config import get_settings
from app.database import get_session
from app.models.user import User
from app.repositories.address_repo import AddressRepository
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.common import total_pages
from app.schemas.order import (
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderStatus,
    OrderStatusUpdate,
)
from app.services.notification_service import NotificationService
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

settings = get_settings()
order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
address_repo = AddressRepository()
service = OrderService(order_repo, cart_repo, product_repo, address_repo)
notifications = NotificationService()


# -------- Admin endpoints --------
# Declared first so /admin/... never reaches the /{order_id} routes.


@router.get(
    "/admin/all",
    response_model=OrderListResponse,
    dependencies=[Depends(require_admin)],
)
def list_all_orders(
    session: Session = Depends(get_session),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: OrderStatus | None = Query(None, alias="status"),
):
    """
    List all orders (admin only).
    """
    orders, count = service.list_all_orders(session, page, limit, status_filter)
    return OrderListResponse(
        count=count,
        totalPages=total_pages(count, limit),
        currentPage=page,
        orders=orders,
    )


@router.get(
    "/admin/{order_id}",
    response_model=OrderResponse,
    dependencies=[Depends(require_admin)],
)
def get_order_admin(
    order_id: int,
    session: Session = Depends(get_session),
):
    """
    Get any order with items (admin only).
    """
    return OrderResponse(order=service.get_order_admin(session, order_id))


@router.patch(
    "/admin/{order_id}/status",
    response_model=OrderResponse,
    dependencies=[Depends(require_admin)],
)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Update order status (admin only).

      pending    -> confirmed, processing, cancelled

      confirmed  -> processing, shipped, cancelled

      processing -> shipped, cancelled

      shipped    -> completed

    Cancelling puts the items back in stock.
    """
    order = service.update_status(session, order_id, payload)
    return OrderResponse(message="Order status updated", order=order)


# -------- User-facing endpoints --------


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    payload: OrderCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Create an order from the current user's cart.

    The confirmation email (if enabled) is sent after the response.
    """
    order = service.place_order(session, current_user.id, payload)
    if settings.SEND_ORDER_EMAILS:
        background_tasks.add_task(
            notifications.send_order_confirmation,
            current_user.email,
            current_user.name,
            order,
        )
    return OrderResponse(message="Order created successfully", order=order)


@router.get("", response_model=OrderListResponse)
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: OrderStatus | None = Query(None, alias="status"),
):
    """
    List the authenticated user's orders (without items), newest first.
    """
    orders, count = service.list_user_orders(
        session, current_user.id, page, limit, status_filter
    )
    return OrderListResponse(
        count=count,
        totalPages=total_pages(count, limit),
        currentPage=page,
        orders=orders,
    )


@router.get("/{order_id}", response_model=OrderResponse)
def get_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Get a single order (with items) belonging to the current user.
    """
    return OrderResponse(order=service.get_user_order(session, current_user.id, order_id))


@router.put("/{order_id}/cancel", response_model=OrderResponse)
def cancel_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Cancel one of the current user's orders while it is still
    pending, confirmed or processing. Stock is restored.
    """
    order = service.cancel_order(session, current_user.id, order_id)
    return OrderResponse(message="Order cancelled", order=order)
