# tuktuk/routers/deliveries.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from tuktuk.core.auth import require_driver
from tuktuk.core.realtime import ChangeNotifier, get_notifier
from tuktuk.database import get_session
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.cart_repo import CartRepository
from tuktuk.repositories.ledger_repo import LedgerRepository
from tuktuk.repositories.order_repo import OrderRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.schemas.order import (
    ClaimResult,
    DeliveryCompletion,
    LocationUpdate,
    OrderDetailRead,
)
from tuktuk.schemas.profile import ProfileRead
from tuktuk.services.delivery_service import DeliveryService
from tuktuk.services.order_service import OrderService

router = APIRouter(prefix="/deliveries", tags=["Deliveries"])

order_repo = OrderRepository()
profile_repo = ProfileRepository()
order_service = OrderService(
    order_repo,
    CartRepository(),
    ProductRepository(),
    BusinessRepository(),
    profile_repo,
)
service = DeliveryService(order_repo, LedgerRepository(), profile_repo, order_service)


@router.get("/available", response_model=list[OrderDetailRead])
def list_available(
    session: Session = Depends(get_session),
    driver: Profile = Depends(require_driver),
    limit: int = 50,
):
    """
    Unassigned orders that can be claimed, oldest first.
    """
    return service.list_available(session, limit=limit)


@router.get("/mine", response_model=list[OrderDetailRead])
def list_my_deliveries(
    session: Session = Depends(get_session),
    driver: Profile = Depends(require_driver),
):
    return service.list_my_deliveries(session, driver)


@router.post("/{order_id}/claim", response_model=ClaimResult)
def claim_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    driver: Profile = Depends(require_driver),
):
    """
    Claim an order. Exactly one driver wins; the others get 200 with
    claimed=false and should refresh the available list.
    """
    return service.claim_order(session, notifier, driver, order_id)


@router.post("/{order_id}/start", response_model=OrderDetailRead)
def start_delivery(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    driver: Profile = Depends(require_driver),
):
    """
    Ready_for_Pickup -> Out_for_Delivery for an order you hold.
    """
    return service.start_delivery(session, notifier, driver, order_id)


@router.post("/{order_id}/complete", response_model=OrderDetailRead)
def complete_delivery(
    order_id: uuid.UUID,
    payload: DeliveryCompletion,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    driver: Profile = Depends(require_driver),
):
    """
    Out_for_Delivery -> Delivered, given the customer's 4-digit code.
    """
    return service.complete_delivery(
        session, notifier, driver, order_id, payload.confirmation_code
    )


@router.put("/location", response_model=ProfileRead)
def update_location(
    payload: LocationUpdate,
    session: Session = Depends(get_session),
    driver: Profile = Depends(require_driver),
):
    return service.update_location(session, driver, payload)
