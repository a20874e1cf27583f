# tuktuk/routers/businesses.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from tuktuk.core.auth import require_customer, require_vendor
from tuktuk.core.realtime import ChangeNotifier, get_notifier
from tuktuk.database import get_session
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.schemas.business import (
    BusinessOwnerRead,
    BusinessRead,
    BusinessUpdate,
    StorefrontRead,
)
from tuktuk.services.business_service import BusinessService

router = APIRouter(prefix="/businesses", tags=["Businesses"])

business_repo = BusinessRepository()
product_repo = ProductRepository()
profile_repo = ProfileRepository()
service = BusinessService(business_repo, product_repo, profile_repo)


# -------- Vendor self-service --------


@router.get("/me", response_model=BusinessOwnerRead)
def get_my_business(
    session: Session = Depends(get_session),
    vendor: Profile = Depends(require_vendor),
):
    """
    The vendor's own business, including approval status and bank details.
    """
    return service.get_my_business(session, vendor)


@router.patch("/me", response_model=BusinessOwnerRead)
def update_my_business(
    payload: BusinessUpdate,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    vendor: Profile = Depends(require_vendor),
):
    return service.update_my_business(session, notifier, vendor, payload)


# -------- Customer browsing --------


@router.get(
    "",
    response_model=list[BusinessRead],
    dependencies=[Depends(require_customer)],
)
def list_businesses(session: Session = Depends(get_session)):
    """
    Approved businesses, sorted by name.
    """
    return service.list_approved(session)


@router.get(
    "/{business_id}",
    response_model=StorefrontRead,
    dependencies=[Depends(require_customer)],
)
def get_storefront(
    business_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Storefront for an Approved business with its available products.
    """
    return service.get_storefront(session, business_id)
