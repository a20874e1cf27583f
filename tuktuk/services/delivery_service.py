# tuktuk/services/delivery_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from tuktuk.core.realtime import ChangeNotifier
from tuktuk.models.ledger import AccountingLedger
from tuktuk.models.order import Order
from tuktuk.models.profile import Profile, Role
from tuktuk.repositories.ledger_repo import LedgerRepository
from tuktuk.repositories.order_repo import OrderRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.schemas.order import ClaimResult, LocationUpdate, OrderDetailRead
from tuktuk.schemas.realtime import ChangeEvent
from tuktuk.services.order_service import OrderService
from tuktuk.services.order_state_machine import (
    DRIVER_ACTIVE_STATUSES,
    OrderStatus,
)

logger = logging.getLogger(__name__)

CLAIM_LOST_MESSAGE = "Another driver already took this order"


class DeliveryService:
    """
    Driver side of the order lifecycle.

    Every write is one conditional UPDATE; when it matches no row the
    order is re-read only to pick the right error, never to retry.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        ledger_repo: LedgerRepository,
        profile_repo: ProfileRepository,
        order_service: OrderService,
    ):
        self.order_repo = order_repo
        self.ledger_repo = ledger_repo
        self.profile_repo = profile_repo
        self.order_service = order_service

    # ----- Lists -----

    def list_available(self, session: Session, limit: int = 50) -> list[OrderDetailRead]:
        orders = self.order_repo.list_available(session, limit=limit)
        return self.order_service.build_details(session, orders, Role.DRIVER)

    def list_my_deliveries(self, session: Session, driver: Profile) -> list[OrderDetailRead]:
        orders = self.order_repo.list_for_driver(session, driver.id, DRIVER_ACTIVE_STATUSES)
        return self.order_service.build_details(session, orders, Role.DRIVER)

    # ----- Claim -----

    def claim_order(
        self,
        session: Session,
        notifier: ChangeNotifier,
        driver: Profile,
        order_id: uuid.UUID,
    ) -> ClaimResult:
        """
        Take an unassigned order. Losing the race to another driver is a
        normal outcome (claimed=False), not an error.
        """
        claimed = self.order_repo.claim_unassigned(session, order_id, driver.id)
        if not claimed:
            session.rollback()
            if self.order_repo.get_by_id(session, order_id) is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Order not found",
                )
            logger.info("Driver %s lost claim on order %s", driver.id, order_id)
            return ClaimResult(claimed=False, message=CLAIM_LOST_MESSAGE, order=None)

        session.commit()
        order = self.order_repo.reload(session, order_id)
        logger.info("Driver %s claimed order %s", driver.id, order_id)
        notifier.publish(ChangeEvent.for_order(order))

        return ClaimResult(
            claimed=True,
            message="Order claimed",
            order=self.order_service.build_details(session, [order], Role.DRIVER)[0],
        )

    # ----- Pickup / delivery -----

    def _diagnose_miss(self, session: Session, order_id: uuid.UUID) -> Order:
        """
        Called after a guarded update matched nothing. Raises 404 for an
        unknown order and returns the row otherwise.
        """
        session.rollback()
        order = self.order_repo.reload(session, order_id)
        if order is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        return order

    def start_delivery(
        self,
        session: Session,
        notifier: ChangeNotifier,
        driver: Profile,
        order_id: uuid.UUID,
    ) -> OrderDetailRead:
        started = self.order_repo.conditional_update(
            session,
            order_id,
            conditions=[
                Order.driver_id == driver.id,
                Order.status == OrderStatus.READY_FOR_PICKUP,
            ],
            values={"status": OrderStatus.OUT_FOR_DELIVERY},
        )
        if not started:
            self._diagnose_miss(session, order_id)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Order is not ready for pickup by you; refresh and retry",
            )

        session.commit()
        order = self.order_repo.reload(session, order_id)
        notifier.publish(ChangeEvent.for_order(order))
        return self.order_service.build_details(session, [order], Role.DRIVER)[0]

    def complete_delivery(
        self,
        session: Session,
        notifier: ChangeNotifier,
        driver: Profile,
        order_id: uuid.UUID,
        confirmation_code: str,
    ) -> OrderDetailRead:
        """
        Mark the order Delivered when the customer's code matches.

        The status change and both ledger entries (SaleRevenue for the
        vendor, DeliveryFee for the platform) commit together. A wrong
        code changes nothing.
        """
        delivered = self.order_repo.conditional_update(
            session,
            order_id,
            conditions=[
                Order.driver_id == driver.id,
                Order.status == OrderStatus.OUT_FOR_DELIVERY,
                Order.delivery_confirmation_code == confirmation_code,
            ],
            values={"status": OrderStatus.DELIVERED},
        )
        if not delivered:
            order = self._diagnose_miss(session, order_id)
            if order.driver_id == driver.id and order.status == OrderStatus.OUT_FOR_DELIVERY:
                logger.info("Wrong confirmation code for order %s", order_id)
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid confirmation code",
                )
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Order is not out for delivery by you; refresh and retry",
            )

        order = self.order_repo.reload(session, order_id)
        fee = order.delivery_fee
        entries = [
            AccountingLedger(
                order_id=order.id,
                business_id=order.business_id,
                transaction_type="SaleRevenue",
                amount=order.order_total_amount - fee,
                payout_status="Owed",
                reference_notes=f"Sale for order {order.id}",
            ),
            AccountingLedger(
                order_id=order.id,
                business_id=order.business_id,
                transaction_type="DeliveryFee",
                amount=fee,
                payout_status="Owed",
                reference_notes=f"Delivery fee for order {order.id}",
            ),
        ]
        for entry in entries:
            self.ledger_repo.append(session, entry)
        session.commit()

        order = self.order_repo.reload(session, order_id)
        logger.info("Order %s delivered by driver %s", order_id, driver.id)
        notifier.publish(ChangeEvent.for_order(order))
        for entry in entries:
            notifier.publish(ChangeEvent.for_ledger(entry))

        return self.order_service.build_details(session, [order], Role.DRIVER)[0]

    # ----- Location -----

    def update_location(
        self,
        session: Session,
        driver: Profile,
        payload: LocationUpdate,
    ) -> Profile:
        driver.last_latitude = payload.latitude
        driver.last_longitude = payload.longitude
        driver.last_location_at = datetime.now(timezone.utc)
        driver.updated_at = driver.last_location_at
        return self.profile_repo.update(session, driver)
