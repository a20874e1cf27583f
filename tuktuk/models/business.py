# tuktuk/models/business.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Business(SQLModel, table=True):
    """
    A vendor's storefront.

    Owned by exactly one Vendor profile. Only businesses with
    approval_status == "Approved" are visible to customers.
    """

    __tablename__ = "businesses"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="profiles.id",
        unique=True,
        index=True,
        description="Owner (Vendor profile)",
    )

    business_name: str = Field(max_length=120, index=True)
    business_description: str | None = None
    address_text: str
    contact_person_name: str | None = None

    # Pending | Approved | Rejected
    approval_status: str = Field(default="Pending", index=True)

    bank_account_details: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class AuditLog(SQLModel, table=True):
    """
    Append-only record of administrative actions.
    """

    __tablename__ = "audit_log"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)

    # e.g. BUSINESS_APPROVED, BUSINESS_REJECTED
    action: str = Field(index=True)

    details: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
