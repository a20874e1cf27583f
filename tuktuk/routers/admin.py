# tuktuk/routers/admin.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from tuktuk.core.auth import require_admin
from tuktuk.core.realtime import ChangeNotifier, get_notifier
from tuktuk.database import get_session
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.schemas.business import (
    ApprovalStatus,
    ApprovalUpdate,
    AuditLogRead,
    BusinessAdminRead,
    BusinessRead,
)
from tuktuk.services.business_service import BusinessService

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)

service = BusinessService(BusinessRepository(), ProductRepository(), ProfileRepository())


@router.get("/businesses", response_model=list[BusinessAdminRead])
def list_businesses(
    search: str | None = None,
    approval_status: ApprovalStatus | None = None,
    session: Session = Depends(get_session),
):
    """
    All businesses with owner contact details, newest first.

    Query params (optional):
      - search: matches business name, owner name or owner email
      - approval_status: Pending | Approved | Rejected
    """
    return service.admin_list(session, search, approval_status)


@router.get("/businesses/pending", response_model=list[BusinessAdminRead])
def list_pending(session: Session = Depends(get_session)):
    return service.list_pending(session)


@router.patch("/businesses/{business_id}/approval", response_model=BusinessRead)
def set_approval(
    business_id: uuid.UUID,
    payload: ApprovalUpdate,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    admin: Profile = Depends(require_admin),
):
    """
    Approve or reject a business. The decision is written to the audit log.
    """
    return service.set_approval(session, notifier, admin, business_id, payload)


@router.get("/audit-log", response_model=list[AuditLogRead])
def list_audit_log(
    limit: int = 50,
    session: Session = Depends(get_session),
):
    return service.list_audit_log(session, limit=limit)
