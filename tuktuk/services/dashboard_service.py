# tuktuk/services/dashboard_service.py
from decimal import Decimal
from typing import Callable

from sqlmodel import Session

from tuktuk.models.profile import Profile, Role
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.order_repo import OrderRepository
from tuktuk.schemas.business import BusinessOwnerRead
from tuktuk.schemas.dashboard import (
    AdminDashboard,
    CustomerDashboard,
    DriverDashboard,
    VendorDashboard,
)
from tuktuk.services.analytics_service import AnalyticsService
from tuktuk.services.business_service import BusinessService
from tuktuk.services.cart_service import CartService
from tuktuk.services.order_service import OrderService
from tuktuk.services.order_state_machine import (
    DRIVER_ACTIVE_STATUSES,
    OrderStatus,
    is_terminal,
)

RECENT_ORDER_LIMIT = 5


class DashboardService:
    """
    Builds the landing payload for each role. Every Role member has a
    builder; a new role without one fails when the service is built.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        business_repo: BusinessRepository,
        order_service: OrderService,
        cart_service: CartService,
        analytics_service: AnalyticsService,
        business_service: BusinessService,
    ):
        self.order_repo = order_repo
        self.business_repo = business_repo
        self.order_service = order_service
        self.cart_service = cart_service
        self.analytics_service = analytics_service
        self.business_service = business_service

        self._builders: dict[Role, Callable[[Session, Profile], object]] = {
            Role.CUSTOMER: self._customer,
            Role.VENDOR: self._vendor,
            Role.DRIVER: self._driver,
            Role.ADMIN: self._admin,
        }
        missing = set(Role) - set(self._builders)
        if missing:
            raise RuntimeError(f"No dashboard builder for roles: {sorted(missing)}")

    def build(self, session: Session, profile: Profile):
        return self._builders[Role(profile.role)](session, profile)

    def _customer(self, session: Session, profile: Profile) -> CustomerDashboard:
        return CustomerDashboard(
            recent_orders=self.order_service.list_my_orders(
                session, profile, limit=RECENT_ORDER_LIMIT
            ),
            cart=self.cart_service.get_cart_summary(session, profile.id),
        )

    def _vendor(self, session: Session, profile: Profile) -> VendorDashboard:
        business = self.business_repo.get_for_owner(session, profile.id)
        if business is None:
            return VendorDashboard(
                business=None,
                order_counts={},
                open_orders=[],
                delivered_revenue=Decimal("0.00"),
            )

        orders = self.order_repo.list_for_business(session, business.id)
        counts = {s: 0 for s in OrderStatus.all()}
        revenue = Decimal("0.00")
        for order in orders:
            counts[order.status] = counts.get(order.status, 0) + 1
            if order.status == OrderStatus.DELIVERED:
                revenue += order.order_total_amount

        open_orders = [o for o in orders if not is_terminal(o.status)]
        return VendorDashboard(
            business=BusinessOwnerRead.model_validate(business),
            order_counts=counts,
            open_orders=self.order_service.build_details(session, open_orders, Role.VENDOR),
            delivered_revenue=revenue,
        )

    def _driver(self, session: Session, profile: Profile) -> DriverDashboard:
        active = self.order_repo.list_for_driver(session, profile.id, DRIVER_ACTIVE_STATUSES)
        return DriverDashboard(
            active_deliveries=self.order_service.build_details(session, active, Role.DRIVER),
            available_order_count=self.order_repo.count_available(session),
        )

    def _admin(self, session: Session, profile: Profile) -> AdminDashboard:
        return AdminDashboard(
            platform_stats=self.analytics_service.platform_stats(session),
            pending_businesses=self.business_service.list_pending(session),
        )
