# tuktuk/schemas/ledger.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

from tuktuk.schemas.business import BusinessRead

TransactionType = Literal[
    "SaleRevenue", "VendorPayout", "PlatformFee", "DeliveryFee", "Refund"
]
PayoutStatus = Literal["Owed", "Processing", "Paid", "Failed"]


class LedgerEntryRead(SQLModel):
    id: uuid.UUID
    order_id: uuid.UUID | None
    business_id: uuid.UUID | None
    transaction_type: TransactionType
    amount: Decimal
    payout_status: PayoutStatus
    reference_notes: str | None
    created_at: datetime


class VendorBalance(SQLModel):
    """
    Derived balance for one vendor: revenue minus payouts.
    """

    total_revenue: Decimal
    total_paid_out: Decimal
    outstanding_balance: Decimal
    transaction_count: int


class VendorSummary(VendorBalance):
    business: BusinessRead


class AccountingOverview(SQLModel):
    vendors: list[VendorSummary]
    total_platform_revenue: Decimal
    total_paid_out: Decimal
    total_outstanding: Decimal


class BusinessTransactions(SQLModel):
    business: BusinessRead
    balance: VendorBalance
    entries: list[LedgerEntryRead]


class PayoutCreate(SQLModel):
    """
    Admin payout log. Only positivity is validated; the amount is not
    checked against the outstanding balance.
    """

    model_config = ConfigDict(extra="forbid")

    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    reference_notes: str | None = None
