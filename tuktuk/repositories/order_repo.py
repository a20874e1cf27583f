# tuktuk/repositories/order_repo.py
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import func, update
from sqlmodel import Session, select

from tuktuk.models.order import Order, OrderItem
from tuktuk.services.order_state_machine import CLAIMABLE_STATUSES, OrderStatus


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits here; order creation and delivery completion are
        multi-step transactions. The service calls session.commit().
      - Guarded writes are single conditional UPDATE statements. The
        returned bool is "exactly one row matched"; callers never
        read-then-write.
    """

    # ---- Reads ----

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def reload(self, session: Session, order_id: uuid.UUID) -> Order | None:
        """Re-read a row after a Core UPDATE, bypassing the identity map."""
        return session.get(Order, order_id, populate_existing=True)

    def list_for_customer(
        self,
        session: Session,
        customer_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def list_for_business(
        self,
        session: Session,
        business_id: uuid.UUID,
        status: str | None = None,
    ) -> list[Order]:
        stmt = select(Order).where(Order.business_id == business_id)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc())
        return list(session.exec(stmt).all())

    def list_delivered_for_business(
        self,
        session: Session,
        business_id: uuid.UUID,
        start: datetime,
        end: datetime,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(
                Order.business_id == business_id,
                Order.status == OrderStatus.DELIVERED,
                Order.created_at >= start,
                Order.created_at < end,
            )
            .order_by(Order.created_at)
        )
        return list(session.exec(stmt).all())

    def list_delivered(
        self,
        session: Session,
        start: datetime,
        end: datetime,
    ) -> list[Order]:
        """Delivered orders across all businesses created in [start, end)."""
        stmt = (
            select(Order)
            .where(
                Order.status == OrderStatus.DELIVERED,
                Order.created_at >= start,
                Order.created_at < end,
            )
            .order_by(Order.created_at)
        )
        return list(session.exec(stmt).all())

    def list_available(self, session: Session, limit: int = 50) -> list[Order]:
        """Unassigned orders a driver could claim, oldest first."""
        stmt = (
            select(Order)
            .where(
                Order.driver_id.is_(None),
                Order.status.in_(CLAIMABLE_STATUSES),
            )
            .order_by(Order.created_at)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def count_available(self, session: Session) -> int:
        stmt = (
            select(func.count())
            .select_from(Order)
            .where(
                Order.driver_id.is_(None),
                Order.status.in_(CLAIMABLE_STATUSES),
            )
        )
        value = session.exec(stmt).one()
        return int(value or 0)

    def list_for_driver(
        self,
        session: Session,
        driver_id: uuid.UUID,
        statuses: Iterable[str],
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.driver_id == driver_id, Order.status.in_(list(statuses)))
            .order_by(Order.updated_at.desc())
        )
        return list(session.exec(stmt).all())

    def order_totals(self, session: Session) -> tuple[int, Any]:
        """(count, sum of order_total_amount) across all orders."""
        stmt = select(
            func.count(Order.id),
            func.coalesce(func.sum(Order.order_total_amount), 0),
        )
        count, total = session.exec(stmt).one()
        return int(count or 0), total

    # ---- Writes ----

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()  # Assign PK
        session.refresh(order)
        return order

    def conditional_update(
        self,
        session: Session,
        order_id: uuid.UUID,
        conditions: list[Any],
        values: dict[str, Any],
    ) -> bool:
        """
        UPDATE orders SET <values>, updated_at = now
        WHERE id = :order_id AND <conditions>

        The database applies the predicate and the write atomically on
        the row. Returns True iff exactly one row was updated.
        """
        stmt = (
            update(Order)
            .where(Order.id == order_id, *conditions)
            .values(**values, updated_at=datetime.now(timezone.utc))
        )
        result = session.connection().execute(stmt)
        return result.rowcount == 1

    def claim_unassigned(
        self,
        session: Session,
        order_id: uuid.UUID,
        driver_id: uuid.UUID,
    ) -> bool:
        """
        Compare-and-set: assign the driver only if nobody holds the order.
        """
        return self.conditional_update(
            session,
            order_id,
            conditions=[
                Order.driver_id.is_(None),
                Order.status.in_(CLAIMABLE_STATUSES),
            ],
            values={
                "driver_id": driver_id,
                "status": OrderStatus.READY_FOR_PICKUP,
            },
        )

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id)
        return list(session.exec(stmt).all())

    def list_items_for_orders(
        self,
        session: Session,
        order_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, list[OrderItem]]:
        ids = list(order_ids)
        grouped: dict[uuid.UUID, list[OrderItem]] = {oid: [] for oid in ids}
        if not ids:
            return grouped
        stmt = select(OrderItem).where(OrderItem.order_id.in_(ids))
        for item in session.exec(stmt).all():
            grouped[item.order_id].append(item)
        return grouped

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        for item in items:
            session.refresh(item)
        return items
