# tuktuk/routers/analytics.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from tuktuk.core.auth import require_admin, require_vendor
from tuktuk.database import get_session
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.order_repo import OrderRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.repositories.stats_repo import StatsRepository
from tuktuk.schemas.analytics import PlatformStats, TimeRange, VendorAnalytics
from tuktuk.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])

service = AnalyticsService(
    OrderRepository(),
    StatsRepository(),
    BusinessRepository(),
    ProfileRepository(),
)


@router.get("/vendor", response_model=VendorAnalytics)
def vendor_analytics(
    time_range: TimeRange = "30d",
    session: Session = Depends(get_session),
    vendor: Profile = Depends(require_vendor),
):
    """
    Delivered-order analytics for the vendor's business.

    Query params:
      - time_range: 7d | 30d | 90d (default 30d)
    """
    return service.vendor_analytics(session, vendor, time_range)


@router.get(
    "/platform",
    response_model=PlatformStats,
    dependencies=[Depends(require_admin)],
)
def platform_stats(
    time_range: TimeRange = "30d",
    session: Session = Depends(get_session),
):
    """
    Platform numbers (admin only): all-time headline counts plus
    delivered revenue, sign-ups and top businesses for the window.

    Query params:
      - time_range: 7d | 30d | 90d (default 30d)
    """
    return service.platform_stats(session, time_range)
