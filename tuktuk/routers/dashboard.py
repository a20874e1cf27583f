# tuktuk/routers/dashboard.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from tuktuk.core.auth import get_current_profile
from tuktuk.database import get_session
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.cart_repo import CartRepository
from tuktuk.repositories.order_repo import OrderRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.repositories.stats_repo import StatsRepository
from tuktuk.schemas.dashboard import Dashboard
from tuktuk.services.analytics_service import AnalyticsService
from tuktuk.services.business_service import BusinessService
from tuktuk.services.cart_service import CartService
from tuktuk.services.dashboard_service import DashboardService
from tuktuk.services.order_service import OrderService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

order_repo = OrderRepository()
business_repo = BusinessRepository()
product_repo = ProductRepository()
profile_repo = ProfileRepository()
cart_repo = CartRepository()

service = DashboardService(
    order_repo,
    business_repo,
    OrderService(order_repo, cart_repo, product_repo, business_repo, profile_repo),
    CartService(cart_repo, product_repo, business_repo),
    AnalyticsService(order_repo, StatsRepository(), business_repo, profile_repo),
    BusinessService(business_repo, product_repo, profile_repo),
)


@router.get("", response_model=Dashboard)
def get_dashboard(
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    """
    Landing payload for the caller's role; `role` tells the shapes apart.
    """
    return service.build(session, profile)
