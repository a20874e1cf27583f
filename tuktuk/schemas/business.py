# tuktuk/schemas/business.py
import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from tuktuk.schemas.product import ProductRead

ApprovalStatus = Literal["Pending", "Approved", "Rejected"]
ApprovalDecision = Literal["Approved", "Rejected"]


class BusinessRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    business_name: str
    business_description: str | None
    address_text: str
    contact_person_name: str | None
    approval_status: ApprovalStatus
    created_at: datetime
    updated_at: datetime


class BusinessOwnerRead(BusinessRead):
    """
    Business as seen by its owner or an admin (includes payout details).
    """

    bank_account_details: str | None


class BusinessAdminRead(BusinessOwnerRead):
    """
    Admin listing row: business plus owner contact details.
    """

    owner_full_name: str | None = None
    owner_email: str | None = None
    owner_phone_number: str | None = None


class StorefrontRead(SQLModel):
    """
    Customer view of one approved business and its available products.
    """

    business: BusinessRead
    products: list[ProductRead]


class BusinessUpdate(SQLModel):
    """
    Partial update by the owning vendor. approval_status is admin-only.
    """

    model_config = ConfigDict(extra="forbid")

    business_name: str | None = Field(default=None, max_length=120)
    business_description: str | None = None
    address_text: str | None = None
    contact_person_name: str | None = None
    bank_account_details: str | None = None

    @field_validator("business_name", "address_text")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ApprovalUpdate(SQLModel):
    """
    Admin decision on a vendor application.
    """

    model_config = ConfigDict(extra="forbid")

    status: ApprovalDecision
    notes: str | None = None


class AuditLogRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    action: str
    details: dict[str, Any]
    created_at: datetime
