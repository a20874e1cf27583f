# tuktuk/models/order.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    One customer order placed with one business.

    Lifecycle (see services/order_state_machine.py):
      Pending -> Confirmed -> Preparing -> Ready_for_Pickup
        -> Out_for_Delivery -> Delivered, plus Cancelled.

    driver_id stays NULL until exactly one driver claims the order;
    once set it never goes back to NULL. Orders are never deleted.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    customer_id: uuid.UUID = Field(
        foreign_key="profiles.id",
        index=True,
    )

    business_id: uuid.UUID = Field(
        foreign_key="businesses.id",
        index=True,
    )

    driver_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="profiles.id",
        index=True,
        description="Assigned driver; NULL until claimed",
    )

    status: str = Field(
        default="Pending",
        index=True,
        description="Order status lifecycle",
    )

    delivery_address_text: str

    # Items subtotal + delivery_fee
    order_total_amount: Decimal = Field(
        max_digits=10,
        decimal_places=2,
    )

    delivery_fee: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Delivery fee charged at checkout",
    )

    # COD | Card | EFT | Digital_Wallet
    payment_method: str

    delivery_confirmation_code: str = Field(
        max_length=4,
        description="4-digit code the customer gives the driver at the door",
    )

    special_instructions: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order.

    price_at_purchase is copied from Product.price when the order is
    created and is never updated afterwards.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    price_at_purchase: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Unit price at time of order",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
