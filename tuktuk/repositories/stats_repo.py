# tuktuk/repositories/stats_repo.py
import uuid
from typing import Iterable

from sqlalchemy import func
from sqlmodel import Session, select

from tuktuk.models.order import OrderItem
from tuktuk.models.product import Product


class StatsRepository:
    """
    Read-only aggregated queries for analytics.
    """

    def top_products(
        self,
        session: Session,
        order_ids: Iterable[uuid.UUID],
        limit: int = 5,
    ) -> list[tuple]:
        """
        (name, total_quantity, total_revenue) for the given orders, by
        revenue at purchase price, highest first.
        """
        ids = list(order_ids)
        if not ids:
            return []

        qty_sum = func.coalesce(func.sum(OrderItem.quantity), 0)
        revenue_sum = func.coalesce(
            func.sum(OrderItem.quantity * OrderItem.price_at_purchase),
            0,
        )

        stmt = (
            select(
                Product.name,
                qty_sum.label("total_quantity"),
                revenue_sum.label("total_revenue"),
            )
            .join(Product, Product.id == OrderItem.product_id)
            .where(OrderItem.order_id.in_(ids))
            .group_by(OrderItem.product_id, Product.name)
            .order_by(revenue_sum.desc())
            .limit(limit)
        )

        return list(session.exec(stmt).all())
