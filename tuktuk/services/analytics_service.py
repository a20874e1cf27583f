# tuktuk/services/analytics_service.py
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable

from fastapi import HTTPException, status
from sqlmodel import Session

from tuktuk.models.order import Order
from tuktuk.models.profile import Profile, Role
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.order_repo import OrderRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.repositories.stats_repo import StatsRepository
from tuktuk.schemas.analytics import (
    DailyStat,
    PlatformStats,
    TimeRange,
    TopBusiness,
    TopProduct,
    UserGrowthStat,
    VendorAnalytics,
)

RANGE_DAYS: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}

CENTS = Decimal("0.01")


def revenue_of(orders: Iterable[Order]) -> Decimal:
    return sum((o.order_total_amount for o in orders), Decimal("0.00"))


def average_value(revenue: Decimal, count: int) -> Decimal:
    return (revenue / count).quantize(CENTS) if count else Decimal("0.00")


def daily_stats(orders: Iterable[Order]) -> list[DailyStat]:
    """Group orders by calendar day of created_at, oldest day first."""
    buckets: dict = {}
    for order in orders:
        day = order.created_at.date()
        count, revenue = buckets.get(day, (0, Decimal("0.00")))
        buckets[day] = (count + 1, revenue + order.order_total_amount)

    return [
        DailyStat(date=day, orders=count, revenue=revenue)
        for day, (count, revenue) in sorted(buckets.items())
    ]


def growth_percent(current: Decimal, previous: Decimal) -> float:
    """Percent change, rounded to one decimal. 0 when previous is 0."""
    if previous == 0:
        return 0.0
    return round(float((current - previous) / previous * 100), 1)


def window_bounds(time_range: TimeRange, now: datetime | None = None):
    """(previous_start, start, end) for a window ending at now."""
    end = now or datetime.now(timezone.utc)
    window = timedelta(days=RANGE_DAYS[time_range])
    start = end - window
    return start - window, start, end


def top_businesses(
    orders: Iterable[Order],
    names: dict[uuid.UUID, str],
    limit: int = 5,
) -> list[TopBusiness]:
    totals: dict[uuid.UUID, tuple[int, Decimal]] = {}
    for order in orders:
        count, revenue = totals.get(order.business_id, (0, Decimal("0.00")))
        totals[order.business_id] = (count + 1, revenue + order.order_total_amount)

    ranked = sorted(totals.items(), key=lambda kv: kv[1][1], reverse=True)[:limit]
    return [
        TopBusiness(
            business_id=business_id,
            name=names.get(business_id, "Unknown"),
            revenue=revenue,
            orders=count,
        )
        for business_id, (count, revenue) in ranked
    ]


def user_growth(profiles: Iterable[Profile]) -> list[UserGrowthStat]:
    """Daily sign-ups split by role, oldest day first."""
    columns = {Role.CUSTOMER: "customers", Role.VENDOR: "vendors", Role.DRIVER: "drivers"}
    buckets: dict = {}
    for profile in profiles:
        column = columns.get(Role(profile.role))
        if column is None:
            continue
        day = profile.created_at.date()
        counts = buckets.setdefault(day, {"customers": 0, "vendors": 0, "drivers": 0})
        counts[column] += 1

    return [UserGrowthStat(date=day, **counts) for day, counts in sorted(buckets.items())]


class AnalyticsService:
    """
    Orchestrates vendor analytics and platform statistics.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        stats_repo: StatsRepository,
        business_repo: BusinessRepository,
        profile_repo: ProfileRepository,
    ):
        self.order_repo = order_repo
        self.stats_repo = stats_repo
        self.business_repo = business_repo
        self.profile_repo = profile_repo

    def vendor_analytics(
        self,
        session: Session,
        vendor: Profile,
        time_range: TimeRange = "30d",
        now: datetime | None = None,
    ) -> VendorAnalytics:
        business = self.business_repo.get_for_owner(session, vendor.id)
        if not business:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found",
            )

        previous_start, start, end = window_bounds(time_range, now)
        orders = self.order_repo.list_delivered_for_business(session, business.id, start, end)
        previous = self.order_repo.list_delivered_for_business(
            session, business.id, previous_start, start
        )

        total_revenue = revenue_of(orders)
        previous_revenue = revenue_of(previous)

        top_rows = self.stats_repo.top_products(session, (o.id for o in orders), limit=5)
        top_products = [
            TopProduct(
                name=name,
                quantity=int(quantity or 0),
                revenue=Decimal(str(revenue or 0)).quantize(CENTS),
            )
            for name, quantity, revenue in top_rows
        ]

        return VendorAnalytics(
            time_range=time_range,
            total_revenue=total_revenue,
            total_orders=len(orders),
            average_order_value=average_value(total_revenue, len(orders)),
            top_products=top_products,
            daily_stats=daily_stats(orders),
            growth_percent=growth_percent(total_revenue, previous_revenue),
        )

    def platform_stats(
        self,
        session: Session,
        time_range: TimeRange = "30d",
        now: datetime | None = None,
    ) -> PlatformStats:
        previous_start, start, end = window_bounds(time_range, now)
        order_count, order_value = self.order_repo.order_totals(session)
        delivered = self.order_repo.list_delivered(session, start, end)
        previous = self.order_repo.list_delivered(session, previous_start, start)
        signups = self.profile_repo.list_created_between(session, start, end)

        revenue = revenue_of(delivered)
        businesses = self.business_repo.get_many(session, (o.business_id for o in delivered))

        return PlatformStats(
            time_range=time_range,
            total_users=self.profile_repo.count(session),
            total_orders=order_count,
            total_order_value=Decimal(str(order_value or 0)).quantize(CENTS),
            active_drivers=self.profile_repo.count_active_drivers(session),
            pending_businesses=self.business_repo.count_by_status(session, "Pending"),
            approved_businesses=self.business_repo.count_by_status(session, "Approved"),
            new_users=len(signups),
            delivered_orders=len(delivered),
            delivered_revenue=revenue,
            average_order_value=average_value(revenue, len(delivered)),
            growth_percent=growth_percent(revenue, revenue_of(previous)),
            top_businesses=top_businesses(
                delivered,
                {bid: b.business_name for bid, b in businesses.items()},
            ),
            user_growth=user_growth(signups),
            daily_stats=daily_stats(delivered),
        )
