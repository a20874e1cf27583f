# tuktuk/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from tuktuk.core.auth import require_customer, require_vendor
from tuktuk.core.realtime import ChangeNotifier, get_notifier
from tuktuk.database import get_session
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.cart_repo import CartRepository
from tuktuk.repositories.order_repo import OrderRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.schemas.order import (
    CheckoutRequest,
    CheckoutResult,
    CustomerOrderRead,
    OrderDetailRead,
    OrderStatusLiteral,
    OrderStatusUpdate,
)
from tuktuk.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])
vendor_router = APIRouter(prefix="/vendor/orders", tags=["Vendor Orders"])

order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
business_repo = BusinessRepository()
profile_repo = ProfileRepository()
service = OrderService(order_repo, cart_repo, product_repo, business_repo, profile_repo)


# -------- Customer endpoints --------


@router.post(
    "/checkout",
    response_model=CheckoutResult,
    status_code=status.HTTP_201_CREATED,
    responses={207: {"model": CheckoutResult, "description": "Some vendors failed"}},
)
def checkout(
    payload: CheckoutRequest,
    response: Response,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    customer: Profile = Depends(require_customer),
):
    """
    Create one order per vendor from the customer's cart.

    - 201: every vendor order was placed.
    - 207: some were placed; `failures` lists the rest.
    - 400: nothing could be placed, or the cart was empty.

    The cart is emptied once all vendors have been attempted.
    """
    result = service.checkout(session, notifier, customer, payload)
    if not result.all_succeeded:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return result


@router.get("/me", response_model=list[CustomerOrderRead])
def list_my_orders(
    session: Session = Depends(get_session),
    customer: Profile = Depends(require_customer),
    skip: int = 0,
    limit: int = 50,
):
    """
    The customer's orders, newest first, with items and confirmation codes.
    """
    return service.list_my_orders(session, customer, skip, limit)


@router.get("/me/{order_id}", response_model=CustomerOrderRead)
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    customer: Profile = Depends(require_customer),
):
    return service.get_my_order(session, customer, order_id)


@router.post("/me/{order_id}/cancel", response_model=CustomerOrderRead)
def cancel_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    customer: Profile = Depends(require_customer),
):
    """
    Cancel an order that the vendor has not confirmed yet.
    """
    return service.cancel_order(session, notifier, customer, order_id)


# -------- Vendor endpoints --------


@vendor_router.get("", response_model=list[OrderDetailRead])
def list_business_orders(
    status_filter: OrderStatusLiteral | None = None,
    session: Session = Depends(get_session),
    vendor: Profile = Depends(require_vendor),
):
    """
    Orders placed with the vendor's business, newest first.
    """
    return service.list_business_orders(session, vendor, status_filter)


@vendor_router.patch("/{order_id}/status", response_model=OrderDetailRead)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    vendor: Profile = Depends(require_vendor),
):
    """
    Move an order forward:

      Pending -> Confirmed -> Preparing -> Ready_for_Pickup

    or cancel it before pickup. Illegal moves return 400 with the allowed
    next statuses; a concurrent change returns 409.
    """
    return service.update_status(session, notifier, vendor, order_id, payload)


@vendor_router.post("/{order_id}/cancel", response_model=OrderDetailRead)
def cancel_business_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    vendor: Profile = Depends(require_vendor),
):
    return service.cancel_order(session, notifier, vendor, order_id)
