# tuktuk/services/accounting_service.py
import logging
import uuid
from decimal import Decimal
from typing import Iterable

from fastapi import HTTPException, status
from sqlmodel import Session

from tuktuk.core.realtime import ChangeNotifier
from tuktuk.models.business import Business
from tuktuk.models.ledger import AccountingLedger
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.ledger_repo import LedgerRepository
from tuktuk.schemas.business import BusinessRead
from tuktuk.schemas.ledger import (
    AccountingOverview,
    BusinessTransactions,
    LedgerEntryRead,
    PayoutCreate,
    VendorBalance,
    VendorSummary,
)
from tuktuk.schemas.realtime import ChangeEvent

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def summarize_vendor(entries: Iterable[AccountingLedger]) -> VendorBalance:
    """
    Fold ledger entries into a balance.

    outstanding = sum(SaleRevenue) - sum(VendorPayout). Other entry
    types are counted but do not move the balance.
    """
    revenue = ZERO
    paid_out = ZERO
    count = 0
    for entry in entries:
        count += 1
        if entry.transaction_type == "SaleRevenue":
            revenue += entry.amount
        elif entry.transaction_type == "VendorPayout":
            paid_out += entry.amount

    return VendorBalance(
        total_revenue=revenue,
        total_paid_out=paid_out,
        outstanding_balance=revenue - paid_out,
        transaction_count=count,
    )


class AccountingService:
    """
    Vendor balances and payouts, derived from the append-only ledger.
    """

    def __init__(self, ledger_repo: LedgerRepository, business_repo: BusinessRepository):
        self.ledger_repo = ledger_repo
        self.business_repo = business_repo

    def _get_business(self, session: Session, business_id: uuid.UUID) -> Business:
        business = self.business_repo.get_by_id(session, business_id)
        if not business:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found",
            )
        return business

    # ----- Admin -----

    def vendor_summaries(self, session: Session) -> AccountingOverview:
        """
        One summary per Approved business (sorted by name) plus platform
        totals across those businesses.
        """
        entries_by_business: dict[uuid.UUID, list[AccountingLedger]] = {}
        for entry in self.ledger_repo.list_all(session):
            if entry.business_id is not None:
                entries_by_business.setdefault(entry.business_id, []).append(entry)

        vendors: list[VendorSummary] = []
        for business in self.business_repo.list_by_status(session, "Approved"):
            balance = summarize_vendor(entries_by_business.get(business.id, []))
            vendors.append(
                VendorSummary(
                    **balance.model_dump(),
                    business=BusinessRead.model_validate(business),
                )
            )

        return AccountingOverview(
            vendors=vendors,
            total_platform_revenue=sum((v.total_revenue for v in vendors), ZERO),
            total_paid_out=sum((v.total_paid_out for v in vendors), ZERO),
            total_outstanding=sum((v.outstanding_balance for v in vendors), ZERO),
        )

    def business_transactions(
        self,
        session: Session,
        business_id: uuid.UUID,
    ) -> BusinessTransactions:
        business = self._get_business(session, business_id)
        entries = self.ledger_repo.list_for_business(session, business.id)
        return BusinessTransactions(
            business=BusinessRead.model_validate(business),
            balance=summarize_vendor(entries),
            entries=[LedgerEntryRead.model_validate(e) for e in entries],
        )

    def log_payout(
        self,
        session: Session,
        notifier: ChangeNotifier,
        admin: Profile,
        business_id: uuid.UUID,
        payload: PayoutCreate,
    ) -> AccountingLedger:
        """
        Record money paid to a vendor. The amount is not checked against
        the outstanding balance.
        """
        business = self._get_business(session, business_id)
        entry = self.ledger_repo.append(
            session,
            AccountingLedger(
                business_id=business.id,
                transaction_type="VendorPayout",
                amount=payload.amount,
                payout_status="Paid",
                reference_notes=payload.reference_notes,
            ),
        )
        session.commit()
        session.refresh(entry)
        logger.info(
            "Payout of %s to business %s logged by admin %s",
            entry.amount,
            business.id,
            admin.id,
        )
        notifier.publish(ChangeEvent.for_ledger(entry))
        return entry

    # ----- Vendor -----

    def my_transactions(self, session: Session, vendor: Profile) -> BusinessTransactions:
        business = self.business_repo.get_for_owner(session, vendor.id)
        if not business:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found",
            )
        return self.business_transactions(session, business.id)
