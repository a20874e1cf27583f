# tuktuk/services/business_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from tuktuk.core.realtime import ChangeNotifier
from tuktuk.models.business import AuditLog, Business
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.schemas.business import (
    ApprovalUpdate,
    BusinessAdminRead,
    BusinessRead,
    BusinessUpdate,
    StorefrontRead,
)
from tuktuk.schemas.product import ProductRead
from tuktuk.schemas.realtime import ChangeEvent

logger = logging.getLogger(__name__)


class BusinessService:
    """
    Business logic for vendor storefronts and their approval.

    Responsibilities:
      - customer browsing (Approved businesses only)
      - vendor self-service on their own business
      - admin review with audit trail
    """

    def __init__(
        self,
        business_repo: BusinessRepository,
        product_repo: ProductRepository,
        profile_repo: ProfileRepository,
    ):
        self.business_repo = business_repo
        self.product_repo = product_repo
        self.profile_repo = profile_repo

    # ----- Customer browsing -----

    def list_approved(self, session: Session) -> list[Business]:
        return self.business_repo.list_by_status(session, "Approved")

    def get_storefront(self, session: Session, business_id: uuid.UUID) -> StorefrontRead:
        """
        Approved business with its available products, sorted by name.
        Non-approved businesses are indistinguishable from missing ones.
        """
        business = self.business_repo.get_by_id(session, business_id)
        if not business or business.approval_status != "Approved":
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found",
            )
        products = self.product_repo.list_for_business(
            session, business.id, only_available=True
        )
        return StorefrontRead(
            business=BusinessRead.model_validate(business),
            products=[ProductRead.model_validate(p) for p in products],
        )

    # ----- Vendor self-service -----

    def get_my_business(self, session: Session, vendor: Profile) -> Business:
        business = self.business_repo.get_for_owner(session, vendor.id)
        if not business:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found",
            )
        return business

    def update_my_business(
        self,
        session: Session,
        notifier: ChangeNotifier,
        vendor: Profile,
        payload: BusinessUpdate,
    ) -> Business:
        business = self.get_my_business(session, vendor)

        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(business, field, value)
        business.updated_at = datetime.now(timezone.utc)

        business = self.business_repo.update(session, business)
        notifier.publish(ChangeEvent.for_business(business))
        return business

    # ----- Admin review -----

    def admin_list(
        self,
        session: Session,
        search: str | None = None,
        approval_status: str | None = None,
    ) -> list[BusinessAdminRead]:
        """
        All businesses, newest first, optionally filtered by a
        case-insensitive search over business name, owner name and owner
        email, and by approval status.
        """
        businesses = self.business_repo.list_all(session)
        owners = self.profile_repo.get_many(session, (b.user_id for b in businesses))
        needle = (search or "").strip().lower()

        rows: list[BusinessAdminRead] = []
        for business in businesses:
            owner = owners.get(business.user_id)
            if approval_status and business.approval_status.lower() != approval_status.lower():
                continue
            if needle:
                haystack = [
                    business.business_name,
                    owner.full_name if owner else "",
                    owner.email if owner else "",
                ]
                if not any(needle in value.lower() for value in haystack):
                    continue
            rows.append(self._to_admin_read(business, owner))
        return rows

    def list_pending(self, session: Session) -> list[BusinessAdminRead]:
        return self.admin_list(session, approval_status="Pending")

    def set_approval(
        self,
        session: Session,
        notifier: ChangeNotifier,
        admin: Profile,
        business_id: uuid.UUID,
        payload: ApprovalUpdate,
    ) -> Business:
        """
        Approve or reject a business, then record an audit entry.

        The audit write is best-effort: if it fails the decision stands
        and the failure is logged.
        """
        business = self.business_repo.get_by_id(session, business_id)
        if not business:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found",
            )

        business.approval_status = payload.status
        business.updated_at = datetime.now(timezone.utc)
        business = self.business_repo.update(session, business)
        logger.info(
            "Business %s set to %s by admin %s", business.id, payload.status, admin.id
        )

        try:
            self.business_repo.add_audit_entry(
                session,
                AuditLog(
                    user_id=admin.id,
                    action=f"BUSINESS_{payload.status.upper()}",
                    details={
                        "business_id": str(business.id),
                        "business_name": business.business_name,
                        "notes": payload.notes,
                    },
                ),
            )
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Audit log write failed for business %s: %s", business.id, e)

        notifier.publish(ChangeEvent.for_business(business))
        return business

    def list_audit_log(self, session: Session, limit: int = 50) -> list[AuditLog]:
        return self.business_repo.list_audit_entries(session, limit=limit)

    # ----- Helpers -----

    @staticmethod
    def _to_admin_read(business: Business, owner: Profile | None) -> BusinessAdminRead:
        return BusinessAdminRead(
            **business.model_dump(),
            owner_full_name=owner.full_name if owner else None,
            owner_email=owner.email if owner else None,
            owner_phone_number=owner.phone_number if owner else None,
        )
