# tuktuk/schemas/order.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import ConfigDict, StringConstraints, field_validator
from sqlmodel import SQLModel, Field

OrderStatusLiteral = Literal[
    "Pending",
    "Confirmed",
    "Preparing",
    "Ready_for_Pickup",
    "Out_for_Delivery",
    "Delivered",
    "Cancelled",
]
PaymentMethod = Literal["COD", "Card", "EFT", "Digital_Wallet"]


class CheckoutRequest(SQLModel):
    """
    Payload for turning the current cart into one order per vendor.

    Backend derives:
      - customer_id from token
      - status = 'Pending'
      - order_total_amount from current product prices + delivery fee
      - delivery_confirmation_code (4 random digits)
    """

    model_config = ConfigDict(extra="forbid")

    delivery_address_text: str
    payment_method: PaymentMethod = "COD"
    special_instructions: str | None = None

    @field_validator("delivery_address_text")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("special_instructions", mode="before")
    @classmethod
    def normalize_note(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str | None = None
    quantity: int
    price_at_purchase: Decimal
    line_total: Decimal


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    The confirmation code is deliberately absent.
    """

    id: uuid.UUID
    customer_id: uuid.UUID
    business_id: uuid.UUID
    driver_id: uuid.UUID | None
    status: OrderStatusLiteral
    delivery_address_text: str
    order_total_amount: Decimal
    delivery_fee: Decimal
    payment_method: PaymentMethod
    special_instructions: str | None
    created_at: datetime
    updated_at: datetime


class OrderDetailRead(OrderRead):
    """
    Full order view including items and party names.
    """

    business_name: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    driver_name: str | None = None
    items: list[OrderItemRead] = []
    allowed_transitions: list[OrderStatusLiteral] = []


class CustomerOrderRead(OrderDetailRead):
    """
    Customer's own order: includes the code they hand to the driver.
    """

    delivery_confirmation_code: str


class CheckoutFailure(SQLModel):
    business_id: uuid.UUID
    business_name: str | None = None
    reason: str


class CheckoutResult(SQLModel):
    """
    Per-vendor outcome of a checkout. all_succeeded is False whenever
    at least one vendor order could not be created.
    """

    orders: list[CustomerOrderRead]
    failures: list[CheckoutFailure]
    all_succeeded: bool
    cart_cleared: bool


class OrderStatusUpdate(SQLModel):
    """
    Vendor payload to move an order along its lifecycle.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatusLiteral


class ClaimResult(SQLModel):
    """
    Outcome of a driver's claim. Losing the race is a normal result:
    claimed=False, order=None, and the client should refresh.
    """

    claimed: bool
    message: str
    order: OrderDetailRead | None = None


class DeliveryCompletion(SQLModel):
    model_config = ConfigDict(extra="forbid")

    confirmation_code: Annotated[str, StringConstraints(pattern=r"^\d{4}$")]


class LocationUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
