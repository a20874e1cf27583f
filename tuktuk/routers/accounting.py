# tuktuk/routers/accounting.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from tuktuk.core.auth import require_admin, require_vendor
from tuktuk.core.realtime import ChangeNotifier, get_notifier
from tuktuk.database import get_session
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.ledger_repo import LedgerRepository
from tuktuk.schemas.ledger import (
    AccountingOverview,
    BusinessTransactions,
    LedgerEntryRead,
    PayoutCreate,
)
from tuktuk.services.accounting_service import AccountingService

router = APIRouter(prefix="/accounting", tags=["Accounting"])

ledger_repo = LedgerRepository()
business_repo = BusinessRepository()
service = AccountingService(ledger_repo, business_repo)


@router.get("/me", response_model=BusinessTransactions)
def my_transactions(
    session: Session = Depends(get_session),
    vendor: Profile = Depends(require_vendor),
):
    """
    The vendor's own balance and ledger entries.
    """
    return service.my_transactions(session, vendor)


# -------- Admin endpoints --------


@router.get(
    "/vendors",
    response_model=AccountingOverview,
    dependencies=[Depends(require_admin)],
)
def vendor_summaries(session: Session = Depends(get_session)):
    """
    Balance per Approved vendor plus platform totals.
    """
    return service.vendor_summaries(session)


@router.get(
    "/vendors/{business_id}",
    response_model=BusinessTransactions,
    dependencies=[Depends(require_admin)],
)
def business_transactions(
    business_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.business_transactions(session, business_id)


@router.post(
    "/vendors/{business_id}/payouts",
    response_model=LedgerEntryRead,
    status_code=status.HTTP_201_CREATED,
)
def log_payout(
    business_id: uuid.UUID,
    payload: PayoutCreate,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    admin: Profile = Depends(require_admin),
):
    """
    Record a payout made to the vendor (status Paid).
    """
    return service.log_payout(session, notifier, admin, business_id, payload)
