# tuktuk/schemas/cart.py
import uuid
from decimal import Decimal

from sqlmodel import SQLModel, Field


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    product_id: uuid.UUID
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart item.
    Quantity 0 (or less) removes the item.
    """

    quantity: int


class CartItemRead(SQLModel):
    """
    Read model for a single cart item at the product's current price.
    """

    product_id: uuid.UUID
    product_name: str
    image_url: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    is_available: bool


class CartVendorGroup(SQLModel):
    """
    Items from one business. Checkout turns each group into one order.
    """

    business_id: uuid.UUID
    business_name: str
    items: list[CartItemRead]
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    groups: list[CartVendorGroup]
    total_quantity: int
    total_price: Decimal
