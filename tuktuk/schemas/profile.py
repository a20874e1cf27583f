# tuktuk/schemas/profile.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

from tuktuk.models.profile import Role

# Roles a user may pick for themselves. Vendors use the vendor signup;
# admins are promoted manually.
SelfServiceRole = Literal["Customer", "Driver"]


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("field cannot be empty")
    return v


class SignUpRequest(SQLModel):
    """
    Customer / Driver registration.

    Validation rules:
      - full_name cannot be empty or whitespace
      - password and confirm_password must match
      - POPIA consent must be given
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=6)
    confirm_password: str
    full_name: str = Field(max_length=100)
    phone_number: str | None = Field(default=None, max_length=30)
    role: SelfServiceRole = "Customer"
    popia_consent: bool

    @field_validator("full_name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("phone_number")
    @classmethod
    def normalize_phone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def check_passwords_and_consent(self) -> "SignUpRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if not self.popia_consent:
            raise ValueError("Please consent to POPIA data processing")
        return self


class VendorSignUpRequest(SignUpRequest):
    """
    Vendor registration: account + business profile in one step.
    The business starts in approval_status = Pending.
    """

    role: Literal["Vendor"] = "Vendor"  # type: ignore[assignment]
    business_name: str = Field(max_length=120)
    business_description: str | None = None
    address_text: str
    contact_person_name: str | None = None

    @field_validator("business_name", "address_text")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _strip_required(v)


class SignInRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1)


class ProfileRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    full_name: str
    email: str
    phone_number: str | None
    role: Role
    is_active: bool
    popia_consent_timestamp: datetime | None
    created_at: datetime


class ProfileUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, max_length=30)

    @field_validator("full_name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_required(v)


class SignUpResult(SQLModel):
    """
    Result of registration. access_token is None when Supabase requires
    email confirmation before the first session.
    """

    profile: ProfileRead
    business_id: uuid.UUID | None = None
    access_token: str | None = None
    refresh_token: str | None = None


class SessionRead(SQLModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    profile: ProfileRead
