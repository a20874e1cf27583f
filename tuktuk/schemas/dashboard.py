# tuktuk/schemas/dashboard.py
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import Field
from sqlmodel import SQLModel

from tuktuk.schemas.analytics import PlatformStats
from tuktuk.schemas.business import BusinessAdminRead, BusinessOwnerRead
from tuktuk.schemas.cart import CartSummary
from tuktuk.schemas.order import CustomerOrderRead, OrderDetailRead


class CustomerDashboard(SQLModel):
    role: Literal["Customer"] = "Customer"
    recent_orders: list[CustomerOrderRead]
    cart: CartSummary


class VendorDashboard(SQLModel):
    """
    business is None until the vendor has registered a storefront.
    """

    role: Literal["Vendor"] = "Vendor"
    business: BusinessOwnerRead | None
    order_counts: dict[str, int]
    open_orders: list[OrderDetailRead]
    delivered_revenue: Decimal


class DriverDashboard(SQLModel):
    role: Literal["Driver"] = "Driver"
    active_deliveries: list[OrderDetailRead]
    available_order_count: int


class AdminDashboard(SQLModel):
    role: Literal["Admin"] = "Admin"
    platform_stats: PlatformStats
    pending_businesses: list[BusinessAdminRead]


Dashboard = Annotated[
    Union[CustomerDashboard, VendorDashboard, DriverDashboard, AdminDashboard],
    Field(discriminator="role"),
]
