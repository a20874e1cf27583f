# tuktuk/services/product_service.py
import csv
import io
import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from tuktuk.core.realtime import ChangeNotifier
from tuktuk.core.storage_utils import (
    delete_public_url,
    generate_object_path,
    upload_to_storage,
)
from tuktuk.models.business import Business
from tuktuk.models.product import Category, Product
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.schemas.product import (
    BulkProductRow,
    BulkUploadResult,
    ProductCreate,
    ProductRead,
    ProductUpdate,
    SkippedRow,
)
from tuktuk.schemas.realtime import ChangeEvent


# --- Image config ---

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

BULK_UPLOAD_COLUMNS = ("name", "description", "price", "category", "image_url", "is_available")


class ProductService:
    """
    Business logic for the vendor catalog.

    Responsibilities:
      - scope every write to the vendor's own business
      - image upload orchestration with Supabase Storage
      - CSV bulk import with category get-or-create
    """

    def __init__(self, repo: ProductRepository, business_repo: BusinessRepository):
        self.repo = repo
        self.business_repo = business_repo

    # ----- Helpers -----

    def _vendor_business(self, session: Session, vendor: Profile) -> Business:
        business = self.business_repo.get_for_owner(session, vendor.id)
        if not business:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Register a business before managing products",
            )
        return business

    def _owned_product(
        self,
        session: Session,
        vendor: Profile,
        product_id: uuid.UUID,
    ) -> Product:
        business = self._vendor_business(session, vendor)
        product = self.repo.get_by_id(session, product_id)
        if not product or product.business_id != business.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def _check_category(self, session: Session, category_id: uuid.UUID | None) -> None:
        if category_id is not None and self.repo.get_category(session, category_id) is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unknown category",
            )

    @staticmethod
    def _validate_and_get_ext(content_type: str, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported image type. Allowed: JPEG, PNG, WEBP.",
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Image too large (max 5MB).",
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    # ----- Categories -----

    def list_categories(self, session: Session) -> list[Category]:
        return self.repo.list_categories(session)

    def _get_or_create_category(self, session: Session, name: str) -> Category:
        category = self.repo.get_category_by_name(session, name)
        if category is None:
            category = self.repo.create_category(session, Category(name=name))
        return category

    # ----- Products -----

    def list_my_products(self, session: Session, vendor: Profile) -> list[Product]:
        business = self._vendor_business(session, vendor)
        return self.repo.list_for_business(session, business.id)

    def create_product(
        self,
        session: Session,
        notifier: ChangeNotifier,
        vendor: Profile,
        payload: ProductCreate,
    ) -> Product:
        business = self._vendor_business(session, vendor)
        self._check_category(session, payload.category_id)

        product = Product(business_id=business.id, **payload.model_dump())
        product = self.repo.create(session, product)
        notifier.publish(ChangeEvent.for_product(product, "INSERT"))
        return product

    def update_product(
        self,
        session: Session,
        notifier: ChangeNotifier,
        vendor: Profile,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update of a product.

        A price change only affects future checkouts; order items keep
        their own price_at_purchase.
        """
        product = self._owned_product(session, vendor, product_id)
        changes = payload.model_dump(exclude_unset=True)
        if "category_id" in changes:
            self._check_category(session, changes["category_id"])

        for field, value in changes.items():
            setattr(product, field, value)
        product.updated_at = datetime.now(timezone.utc)

        product = self.repo.update(session, product)
        notifier.publish(ChangeEvent.for_product(product))
        return product

    def toggle_availability(
        self,
        session: Session,
        notifier: ChangeNotifier,
        vendor: Profile,
        product_id: uuid.UUID,
    ) -> Product:
        product = self._owned_product(session, vendor, product_id)
        product.is_available = not product.is_available
        product.updated_at = datetime.now(timezone.utc)
        product = self.repo.update(session, product)
        notifier.publish(ChangeEvent.for_product(product))
        return product

    def delete_product(
        self,
        session: Session,
        notifier: ChangeNotifier,
        vendor: Profile,
        product_id: uuid.UUID,
    ) -> None:
        """
        Delete a product and clean up its Storage image.

        Products that already appear on orders cannot be deleted (the
        order_items foreign key refuses); mark them unavailable instead.
        """
        product = self._owned_product(session, vendor, product_id)
        image_url = product.image_url
        event = ChangeEvent.for_product(product, "DELETE")

        try:
            self.repo.delete(session, product)
        except IntegrityError:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Product appears on orders; mark it unavailable instead",
            )
        if image_url:
            delete_public_url(image_url)
        notifier.publish(event)

    # ----- Image -----

    def set_image(
        self,
        session: Session,
        notifier: ChangeNotifier,
        vendor: Profile,
        product_id: uuid.UUID,
        content_type: str,
        file_bytes: bytes,
    ) -> Product:
        """
        Upload or replace the product image.

        - Validates content type + size.
        - Uploads under "<business_id>/<millis>_<uuid>.<ext>".
        - Deletes the previous image from Storage (best-effort).
        """
        product = self._owned_product(session, vendor, product_id)
        ext = self._validate_and_get_ext(content_type, file_bytes)

        old_url = product.image_url
        path = generate_object_path(product.business_id, ext)
        product.image_url = upload_to_storage(path, file_bytes, content_type)
        product.updated_at = datetime.now(timezone.utc)
        product = self.repo.update(session, product)

        if old_url:
            delete_public_url(old_url)
        notifier.publish(ChangeEvent.for_product(product))
        return product

    # ----- Bulk upload -----

    @staticmethod
    def parse_csv(csv_text: str) -> tuple[list[BulkProductRow], list[SkippedRow]]:
        """
        Parse bulk-upload CSV.

        Header names are matched case-insensitively and must include
        every column in BULK_UPLOAD_COLUMNS. Rows without a name or with a
        non-positive price are skipped and reported by line number.
        """
        reader = csv.DictReader(io.StringIO(csv_text.strip()))
        headers = {h.strip().lower(): h for h in (reader.fieldnames or [])}
        missing = [col for col in BULK_UPLOAD_COLUMNS if col not in headers]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="CSV must contain columns: " + ", ".join(BULK_UPLOAD_COLUMNS),
            )

        rows: list[BulkProductRow] = []
        skipped: list[SkippedRow] = []

        for line_no, raw in enumerate(reader, start=2):
            values = {col: (raw.get(headers[col]) or "").strip() for col in BULK_UPLOAD_COLUMNS}

            if not values["name"]:
                skipped.append(SkippedRow(line=line_no, reason="Missing name"))
                continue

            try:
                price = Decimal(values["price"]).quantize(Decimal("0.01"))
            except InvalidOperation:
                price = Decimal("0")
            if not price.is_finite() or price <= 0:
                skipped.append(SkippedRow(line=line_no, reason="Price must be positive"))
                continue

            rows.append(
                BulkProductRow(
                    name=values["name"],
                    description=values["description"] or None,
                    price=price,
                    category=values["category"] or None,
                    image_url=values["image_url"] or None,
                    is_available=values["is_available"].lower() == "true",
                )
            )

        return rows, skipped

    def bulk_upload(
        self,
        session: Session,
        notifier: ChangeNotifier,
        vendor: Profile,
        csv_text: str,
        preview: bool = False,
    ) -> BulkUploadResult:
        business = self._vendor_business(session, vendor)
        rows, skipped = self.parse_csv(csv_text)

        if preview:
            return BulkUploadResult(parsed=rows, skipped=skipped)

        if not rows:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No valid products to upload",
            )

        category_ids: dict[str, uuid.UUID] = {}
        for name in sorted({r.category for r in rows if r.category}):
            category_ids[name] = self._get_or_create_category(session, name).id

        products = [
            Product(
                business_id=business.id,
                name=row.name,
                description=row.description,
                price=row.price,
                category_id=category_ids.get(row.category) if row.category else None,
                image_url=row.image_url,
                is_available=row.is_available,
            )
            for row in rows
        ]
        created = self.repo.create_many(session, products)
        for product in created:
            notifier.publish(ChangeEvent.for_product(product, "INSERT"))

        return BulkUploadResult(
            parsed=rows,
            skipped=skipped,
            created=[ProductRead.model_validate(p) for p in created],
        )
