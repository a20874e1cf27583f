# tuktuk/models/ledger.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


class AccountingLedger(SQLModel, table=True):
    """
    Append-only financial entry.

    transaction_type: SaleRevenue | VendorPayout | PlatformFee
                      | DeliveryFee | Refund
    payout_status:    Owed | Processing | Paid | Failed

    Vendor balances are derived from these rows, never stored.
    """

    __tablename__ = "accounting_ledger"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="orders.id",
        index=True,
    )

    business_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="businesses.id",
        index=True,
    )

    transaction_type: str = Field(index=True)

    amount: Decimal = Field(
        max_digits=12,
        decimal_places=2,
    )

    payout_status: str = Field(default="Owed")

    reference_notes: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
