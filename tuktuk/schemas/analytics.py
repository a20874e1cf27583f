# tuktuk/schemas/analytics.py
import datetime as dt
import uuid
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel

TimeRange = Literal["7d", "30d", "90d"]


class DailyStat(SQLModel):
    """
    Delivered revenue per day.
    """

    model_config = ConfigDict(extra="forbid")

    date: dt.date
    orders: int
    revenue: Decimal


class TopProduct(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    quantity: int
    revenue: Decimal


class VendorAnalytics(SQLModel):
    model_config = ConfigDict(extra="forbid")

    time_range: TimeRange
    total_revenue: Decimal
    total_orders: int
    average_order_value: Decimal
    top_products: list[TopProduct]
    daily_stats: list[DailyStat]
    growth_percent: float


class TopBusiness(SQLModel):
    model_config = ConfigDict(extra="forbid")

    business_id: uuid.UUID
    name: str
    revenue: Decimal
    orders: int


class UserGrowthStat(SQLModel):
    """
    Sign-ups per day by role. Admin accounts are not counted here.
    """

    model_config = ConfigDict(extra="forbid")

    date: dt.date
    customers: int
    vendors: int
    drivers: int


class PlatformStats(SQLModel):
    """
    Admin analytics.

    total_*, active_drivers and the business counts are all-time.
    Everything else covers Delivered orders and sign-ups inside
    time_range, with growth_percent against the window before it.
    """

    model_config = ConfigDict(extra="forbid")

    time_range: TimeRange
    total_users: int
    total_orders: int
    total_order_value: Decimal
    active_drivers: int
    pending_businesses: int
    approved_businesses: int
    new_users: int
    delivered_orders: int
    delivered_revenue: Decimal
    average_order_value: Decimal
    growth_percent: float
    top_businesses: list[TopBusiness]
    user_growth: list[UserGrowthStat]
    daily_stats: list[DailyStat]
