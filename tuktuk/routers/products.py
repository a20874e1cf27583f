# tuktuk/routers/products.py
import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    UploadFile,
    status,
)
from sqlmodel import Session

from tuktuk.core.auth import get_current_profile, require_vendor
from tuktuk.core.realtime import ChangeNotifier, get_notifier
from tuktuk.database import get_session
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.schemas.product import (
    BulkUploadRequest,
    BulkUploadResult,
    CategoryRead,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)
from tuktuk.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
business_repo = BusinessRepository()
service = ProductService(repo, business_repo)


@router.get(
    "/categories",
    response_model=list[CategoryRead],
    dependencies=[Depends(get_current_profile)],
)
def list_categories(session: Session = Depends(get_session)):
    return service.list_categories(session)


# -------- Vendor catalog --------


@router.get("/mine", response_model=list[ProductRead])
def list_my_products(
    session: Session = Depends(get_session),
    vendor: Profile = Depends(require_vendor),
):
    """
    All products of the vendor's business, newest first, available or not.
    """
    return service.list_my_products(session, vendor)


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    vendor: Profile = Depends(require_vendor),
):
    return service.create_product(session, notifier, vendor, payload)


@router.post("/bulk", response_model=BulkUploadResult)
def bulk_upload(
    payload: BulkUploadRequest,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    vendor: Profile = Depends(require_vendor),
):
    """
    Import products from CSV text.

    - Header: name,description,price,category,image_url,is_available
    - preview=true parses and reports without writing anything.
    - Unknown categories are created.
    """
    return service.bulk_upload(
        session, notifier, vendor, payload.csv_text, preview=payload.preview
    )


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    vendor: Profile = Depends(require_vendor),
):
    """
    Partial update. A new price applies to future checkouts only.
    """
    return service.update_product(session, notifier, vendor, product_id, payload)


@router.post("/{product_id}/toggle-availability", response_model=ProductRead)
def toggle_availability(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    vendor: Profile = Depends(require_vendor),
):
    return service.toggle_availability(session, notifier, vendor, product_id)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    vendor: Profile = Depends(require_vendor),
):
    """
    Delete a product and its image. Products already ordered return 409.
    """
    service.delete_product(session, notifier, vendor, product_id)
    return None


@router.post(
    "/{product_id}/image",
    response_model=ProductRead,
    summary="Upload or replace the product image",
)
def upload_image(
    product_id: uuid.UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    vendor: Profile = Depends(require_vendor),
):
    """
    Upload a new image for the product.

    - Accepts JPEG, PNG, WEBP up to 5MB.
    - Replaces (and deletes) any previous image.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    file_bytes = file.file.read()
    return service.set_image(
        session=session,
        notifier=notifier,
        vendor=vendor,
        product_id=product_id,
        content_type=file.content_type,
        file_bytes=file_bytes,
    )
