# tuktuk/routers/realtime.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlmodel import Session

from tuktuk.core.auth import get_current_profile
from tuktuk.core.realtime import ChangeNotifier, get_notifier
from tuktuk.database import get_session
from tuktuk.models.profile import Profile, Role
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.schemas.realtime import FILTER_KEYS, WatchedTable

router = APIRouter(prefix="/realtime", tags=["Realtime"])

business_repo = BusinessRepository()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}

# Streams whose events reveal who ordered from whom
PRIVATE_TABLES = {"orders", "accounting_ledger"}


def _forbidden() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only subscribe to your own changes",
    )


def scoped_filters(
    session: Session,
    profile: Profile,
    table: str,
    filters: dict[str, uuid.UUID],
) -> dict[str, uuid.UUID]:
    """
    Narrow a subscription to what the caller may see.

    Admins get the filters they asked for. Everyone else may only name
    themselves as customer_id / driver_id. On private streams a vendor
    is pinned to their own business, a customer to their own orders,
    and only vendors may follow the ledger. Drivers keep the unfiltered
    orders stream so the available list stays fresh.
    """
    role = Role(profile.role)
    if role == Role.ADMIN:
        return filters

    for key in ("customer_id", "driver_id"):
        if key in filters and filters[key] != profile.id:
            raise _forbidden()

    scoped = dict(filters)
    if table not in PRIVATE_TABLES:
        return scoped

    if role == Role.VENDOR:
        business = business_repo.get_for_owner(session, profile.id)
        if not business:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found",
            )
        if scoped.get("business_id", business.id) != business.id:
            raise _forbidden()
        scoped["business_id"] = business.id
    elif table == "accounting_ledger":
        raise _forbidden()
    elif role == Role.CUSTOMER:
        scoped["customer_id"] = profile.id

    return scoped


@router.get("/{table}", response_class=StreamingResponse)
def subscribe(
    table: WatchedTable,
    business_id: uuid.UUID | None = None,
    customer_id: uuid.UUID | None = None,
    driver_id: uuid.UUID | None = None,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    """
    Server-Sent Events stream of row changes on `table`.

    Each event carries only ids and updated_at; clients re-fetch the
    affected view. Optional query params narrow the stream by equality.
    """
    values = (business_id, customer_id, driver_id)
    filters = {
        key: value for key, value in zip(FILTER_KEYS, values) if value is not None
    }
    return StreamingResponse(
        notifier.stream(table, scoped_filters(session, profile, table, filters)),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
