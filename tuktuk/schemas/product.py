# tuktuk/schemas/product.py
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class CategoryRead(SQLModel):
    id: uuid.UUID
    name: str
    description: str | None


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    business_id: uuid.UUID
    name: str
    description: str | None
    price: Decimal
    category_id: uuid.UUID | None
    image_url: str | None
    is_available: bool
    created_at: datetime
    updated_at: datetime


class ProductCreate(SQLModel):
    """
    Payload for creating a product in the vendor's own business.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=120)
    description: str | None = None
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    category_id: uuid.UUID | None = None
    image_url: str | None = None
    is_available: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=120)
    description: str | None = None
    price: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    category_id: uuid.UUID | None = None
    image_url: str | None = None  # allow manual override if needed
    is_available: bool | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class BulkUploadRequest(SQLModel):
    """
    CSV text with header:
        name,description,price,category,image_url,is_available
    """

    model_config = ConfigDict(extra="forbid")

    csv_text: str
    preview: bool = False


class BulkProductRow(SQLModel):
    name: str
    description: str | None = None
    price: Decimal
    category: str | None = None
    image_url: str | None = None
    is_available: bool = True


class SkippedRow(SQLModel):
    line: int
    reason: str


class BulkUploadResult(SQLModel):
    parsed: list[BulkProductRow]
    skipped: list[SkippedRow]
    created: list[ProductRead] = []
