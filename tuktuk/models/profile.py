# tuktuk/models/profile.py
import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlmodel import SQLModel, Field


class Role(str, Enum):
    """
    Closed set of application roles.

    Every member must have a dashboard builder (see DashboardService).
    """

    CUSTOMER = "Customer"
    VENDOR = "Vendor"
    DRIVER = "Driver"
    ADMIN = "Admin"


class Profile(SQLModel, table=True):
    """
    Persistent profile for a marketplace participant.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    This table is *not* responsible for password hashes. Supabase Auth
    stores the password in its own schema. We only mirror identity,
    contact details, and application role.
    """

    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    full_name: str = Field(max_length=100)

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    phone_number: str | None = Field(default=None, max_length=30)

    # Customer | Vendor | Driver | Admin
    role: str = Field(index=True)

    is_active: bool = Field(default=True, index=True)

    popia_consent_timestamp: datetime | None = Field(
        default=None,
        description="When the user consented to POPIA data processing",
    )

    # Drivers only: last reported position
    last_latitude: float | None = None
    last_longitude: float | None = None
    last_location_at: datetime | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
