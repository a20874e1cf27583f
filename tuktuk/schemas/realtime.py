# tuktuk/schemas/realtime.py
import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

from tuktuk.models.business import Business
from tuktuk.models.ledger import AccountingLedger
from tuktuk.models.order import Order
from tuktuk.models.product import Product

ChangeKind = Literal["INSERT", "UPDATE", "DELETE"]
WatchedTable = Literal["orders", "businesses", "products", "accounting_ledger"]

# Columns a subscriber may filter on (equality only)
FILTER_KEYS = ("business_id", "customer_id", "driver_id")


class ChangeEvent(SQLModel):
    """
    Notification that a row changed. Carries no payload beyond the keys
    needed for filtering: subscribers re-fetch their own view.

    updated_at lets a client drop a fetch response that resolved after a
    newer event for the same row.
    """

    model_config = ConfigDict(extra="forbid")

    table: WatchedTable
    event: ChangeKind
    id: uuid.UUID
    business_id: uuid.UUID | None = None
    customer_id: uuid.UUID | None = None
    driver_id: uuid.UUID | None = None
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    def matches(self, filters: dict[str, uuid.UUID]) -> bool:
        return all(getattr(self, key) == value for key, value in filters.items())

    @classmethod
    def for_order(cls, order: Order, event: ChangeKind = "UPDATE") -> "ChangeEvent":
        return cls(
            table="orders",
            event=event,
            id=order.id,
            business_id=order.business_id,
            customer_id=order.customer_id,
            driver_id=order.driver_id,
            updated_at=order.updated_at,
        )

    @classmethod
    def for_business(
        cls, business: Business, event: ChangeKind = "UPDATE"
    ) -> "ChangeEvent":
        return cls(
            table="businesses",
            event=event,
            id=business.id,
            business_id=business.id,
            updated_at=business.updated_at,
        )

    @classmethod
    def for_product(cls, product: Product, event: ChangeKind = "UPDATE") -> "ChangeEvent":
        return cls(
            table="products",
            event=event,
            id=product.id,
            business_id=product.business_id,
            updated_at=product.updated_at,
        )

    @classmethod
    def for_ledger(cls, entry: AccountingLedger) -> "ChangeEvent":
        return cls(
            table="accounting_ledger",
            event="INSERT",
            id=entry.id,
            business_id=entry.business_id,
            updated_at=entry.updated_at,
        )
