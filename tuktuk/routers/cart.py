# tuktuk/routers/cart.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from tuktuk.core.auth import require_customer
from tuktuk.database import get_session
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.cart_repo import CartRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.schemas.cart import CartItemCreate, CartItemUpdate, CartSummary
from tuktuk.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
business_repo = BusinessRepository()
service = CartService(cart_repo, product_repo, business_repo)


@router.get("", response_model=CartSummary)
def get_cart(
    session: Session = Depends(get_session),
    customer: Profile = Depends(require_customer),
):
    """
    Cart grouped by vendor at current prices, with a delivery fee per vendor.
    """
    return service.get_cart_summary(session, customer.id)


@router.post("/items", response_model=CartSummary)
def add_item(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    customer: Profile = Depends(require_customer),
):
    return service.add_to_cart(session, customer.id, payload)


@router.patch("/items/{product_id}", response_model=CartSummary)
def update_item_quantity(
    product_id: uuid.UUID,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    customer: Profile = Depends(require_customer),
):
    """
    Set a line's quantity. Zero removes the line.
    """
    return service.update_quantity(session, customer.id, product_id, payload)


@router.delete("/items/{product_id}", response_model=CartSummary)
def remove_item(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    customer: Profile = Depends(require_customer),
):
    return service.remove_item(session, customer.id, product_id)


@router.delete("", response_model=CartSummary)
def clear_cart(
    session: Session = Depends(get_session),
    customer: Profile = Depends(require_customer),
):
    return service.clear_cart(session, customer.id)
