# tuktuk/services/order_service.py
import logging
import random
import uuid
from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from tuktuk.core.config import get_settings
from tuktuk.core.realtime import ChangeNotifier
from tuktuk.models.business import Business
from tuktuk.models.cart import CartItem
from tuktuk.models.order import Order, OrderItem
from tuktuk.models.product import Product
from tuktuk.models.profile import Profile, Role
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.cart_repo import CartRepository
from tuktuk.repositories.order_repo import OrderRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.schemas.order import (
    CheckoutFailure,
    CheckoutRequest,
    CheckoutResult,
    CustomerOrderRead,
    OrderDetailRead,
    OrderItemRead,
    OrderStatusUpdate,
)
from tuktuk.schemas.realtime import ChangeEvent
from tuktuk.services.order_state_machine import (
    OrderStatus,
    allowed_transitions,
    validate_transition,
)

logger = logging.getLogger(__name__)


class CheckoutGroupError(Exception):
    """One vendor's part of a checkout cannot be placed."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def generate_confirmation_code() -> str:
    """4 pseudo-random digits, zero padded. Not unique across orders."""
    return f"{random.randint(0, 9999):04d}"


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Turn the cart into one order per vendor (checkout)
      - Customer and vendor order views
      - Vendor status moves and cancellations through the state machine
      - Build detail DTOs with party names and allowed next statuses
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        business_repo: BusinessRepository,
        profile_repo: ProfileRepository,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.business_repo = business_repo
        self.profile_repo = profile_repo

    # -------- Checkout --------

    def checkout(
        self,
        session: Session,
        notifier: ChangeNotifier,
        customer: Profile,
        payload: CheckoutRequest,
    ) -> CheckoutResult:
        """
        Convert the customer's cart into one Pending order per vendor.

        Steps:
          1. Load cart; error if empty.
          2. Group lines by the product's business.
          3. For each group, in its own transaction:
             - business must be Approved, products available
             - total = sum(current price * qty) + delivery fee
             - create Order + OrderItems with price_at_purchase
             A failed group is rolled back and reported; others stand.
          4. Clear the cart regardless of outcome.
          5. Publish INSERT events for the orders that were created.

        Raises 400 when no group could be placed.
        """
        # 1) Load cart
        cart_items = self.cart_repo.list_for_customer(session, customer.id)
        if not cart_items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )

        # 2) Group by vendor
        products = self.product_repo.get_many(session, (ci.product_id for ci in cart_items))
        groups: dict[uuid.UUID, list[CartItem]] = {}
        for ci in cart_items:
            product = products.get(ci.product_id)
            if product is not None:
                groups.setdefault(product.business_id, []).append(ci)

        # 3) Place each vendor order independently
        placed: list[Order] = []
        failures: list[CheckoutFailure] = []

        for business_id, lines in groups.items():
            business = self.business_repo.get_by_id(session, business_id)
            try:
                order = self._place_vendor_order(
                    session, customer.id, business, lines, products, payload
                )
                session.commit()
                placed.append(order)
            except CheckoutGroupError as e:
                session.rollback()
                failures.append(self._failure(business_id, business, e.reason))
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("Checkout failed for business %s: %s", business_id, e)
                failures.append(
                    self._failure(business_id, business, "Could not save order")
                )

        # 4) Clear cart
        self.cart_repo.clear_customer_cart(session, customer.id)
        logger.info(
            "Checkout by %s: %d placed, %d failed",
            customer.id,
            len(placed),
            len(failures),
        )

        # 5) Notify
        for order in placed:
            notifier.publish(ChangeEvent.for_order(order, "INSERT"))

        if not placed:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": "No orders could be placed",
                    "failures": [f.model_dump(mode="json") for f in failures],
                    "cart_cleared": True,
                },
            )

        return CheckoutResult(
            orders=self.build_customer_views(session, placed),
            failures=failures,
            all_succeeded=not failures,
            cart_cleared=True,
        )

    def _place_vendor_order(
        self,
        session: Session,
        customer_id: uuid.UUID,
        business: Business | None,
        lines: list[CartItem],
        products: dict[uuid.UUID, Product],
        payload: CheckoutRequest,
    ) -> Order:
        if business is None or business.approval_status != "Approved":
            raise CheckoutGroupError("Vendor is not accepting orders")

        fee = get_settings().DELIVERY_FEE
        subtotal = Decimal("0.00")
        for ci in lines:
            product = products[ci.product_id]
            if not product.is_available or product.business_id != business.id:
                raise CheckoutGroupError(f"{product.name} is no longer available")
            subtotal += product.price * ci.quantity

        order = self.order_repo.create_order(
            session,
            Order(
                customer_id=customer_id,
                business_id=business.id,
                status=OrderStatus.PENDING,
                delivery_address_text=payload.delivery_address_text,
                order_total_amount=subtotal + fee,
                delivery_fee=fee,
                payment_method=payload.payment_method,
                delivery_confirmation_code=generate_confirmation_code(),
                special_instructions=payload.special_instructions,
            ),
        )
        self.order_repo.create_items(
            session,
            [
                OrderItem(
                    order_id=order.id,
                    product_id=ci.product_id,
                    quantity=ci.quantity,
                    price_at_purchase=products[ci.product_id].price,
                )
                for ci in lines
            ],
        )
        return order

    @staticmethod
    def _failure(
        business_id: uuid.UUID,
        business: Business | None,
        reason: str,
    ) -> CheckoutFailure:
        return CheckoutFailure(
            business_id=business_id,
            business_name=business.business_name if business else None,
            reason=reason,
        )

    # -------- Customer views --------

    def list_my_orders(
        self,
        session: Session,
        customer: Profile,
        skip: int = 0,
        limit: int = 50,
    ) -> list[CustomerOrderRead]:
        orders = self.order_repo.list_for_customer(session, customer.id, skip, limit)
        return self.build_customer_views(session, orders)

    def get_my_order(
        self,
        session: Session,
        customer: Profile,
        order_id: uuid.UUID,
    ) -> CustomerOrderRead:
        """
        404 if the order does not exist or belongs to someone else.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order or order.customer_id != customer.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        return self.build_customer_views(session, [order])[0]

    # -------- Vendor views --------

    def _vendor_business(self, session: Session, vendor: Profile) -> Business:
        business = self.business_repo.get_for_owner(session, vendor.id)
        if not business:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found",
            )
        return business

    def list_business_orders(
        self,
        session: Session,
        vendor: Profile,
        status_filter: str | None = None,
    ) -> list[OrderDetailRead]:
        business = self._vendor_business(session, vendor)
        orders = self.order_repo.list_for_business(session, business.id, status_filter)
        return self.build_details(session, orders, Role.VENDOR)

    # -------- Status changes --------

    def update_status(
        self,
        session: Session,
        notifier: ChangeNotifier,
        vendor: Profile,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> OrderDetailRead:
        """
        Vendor moves one of their orders along the lifecycle.

          Pending          -> Confirmed, Cancelled
          Confirmed        -> Preparing, Cancelled
          Preparing        -> Ready_for_Pickup, Cancelled
          Ready_for_Pickup -> Cancelled (drivers take it from here)

        Invalid transitions raise 400; a concurrent change raises 409.
        """
        business = self._vendor_business(session, vendor)
        order = self.order_repo.get_by_id(session, order_id)
        if not order or order.business_id != business.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )

        order = self._guarded_transition(
            session,
            notifier,
            order,
            payload.status,
            Role.VENDOR,
            ownership=[Order.business_id == business.id],
        )
        return self.build_details(session, [order], Role.VENDOR)[0]

    def cancel_order(
        self,
        session: Session,
        notifier: ChangeNotifier,
        actor: Profile,
        order_id: uuid.UUID,
    ) -> OrderDetailRead:
        """
        Cancel on behalf of the customer (Pending only) or the vendor
        (any status before Out_for_Delivery).
        """
        order = self.order_repo.get_by_id(session, order_id)
        role = Role(actor.role)

        if role == Role.CUSTOMER:
            owns = order is not None and order.customer_id == actor.id
            ownership = [Order.customer_id == actor.id]
        else:
            business = self._vendor_business(session, actor)
            owns = order is not None and order.business_id == business.id
            ownership = [Order.business_id == business.id]

        if not owns:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )

        order = self._guarded_transition(
            session, notifier, order, OrderStatus.CANCELLED, role, ownership
        )
        if role == Role.CUSTOMER:
            return self.build_customer_views(session, [order])[0]
        return self.build_details(session, [order], role)[0]

    def _guarded_transition(
        self,
        session: Session,
        notifier: ChangeNotifier,
        order: Order,
        new_status: str,
        actor: Role,
        ownership: list[Any],
    ) -> Order:
        current = order.status
        validate_transition(current, new_status, actor)

        updated = self.order_repo.conditional_update(
            session,
            order.id,
            conditions=[Order.status == current, *ownership],
            values={"status": new_status},
        )
        if not updated:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Order changed since you loaded it; refresh and retry",
            )

        session.commit()
        order = self.order_repo.reload(session, order.id)
        logger.info(
            "Order %s %s -> %s by %s", order.id, current, new_status, actor.value
        )
        notifier.publish(ChangeEvent.for_order(order))
        return order

    # -------- DTO builders --------

    def build_details(
        self,
        session: Session,
        orders: list[Order],
        actor: Role,
    ) -> list[OrderDetailRead]:
        """
        Compose OrderDetailRead rows for vendors and drivers. The
        confirmation code is never included.
        """
        return [
            OrderDetailRead(**data)
            for data in self._detail_fields(session, orders, actor)
        ]

    def build_customer_views(
        self,
        session: Session,
        orders: list[Order],
    ) -> list[CustomerOrderRead]:
        return [
            CustomerOrderRead(
                **data,
                delivery_confirmation_code=order.delivery_confirmation_code,
            )
            for order, data in zip(
                orders, self._detail_fields(session, orders, Role.CUSTOMER)
            )
        ]

    def _detail_fields(
        self,
        session: Session,
        orders: list[Order],
        actor: Role,
    ) -> list[dict[str, Any]]:
        items_by_order = self.order_repo.list_items_for_orders(session, (o.id for o in orders))
        products = self.product_repo.get_many(
            session,
            (it.product_id for items in items_by_order.values() for it in items),
        )
        people = self.profile_repo.get_many(
            session,
            [o.customer_id for o in orders] + [o.driver_id for o in orders if o.driver_id],
        )
        businesses = self.business_repo.get_many(session, (o.business_id for o in orders))

        rows: list[dict[str, Any]] = []
        for order in orders:
            item_dtos = [
                OrderItemRead(
                    id=it.id,
                    order_id=it.order_id,
                    product_id=it.product_id,
                    product_name=products[it.product_id].name
                    if it.product_id in products
                    else None,
                    quantity=it.quantity,
                    price_at_purchase=it.price_at_purchase,
                    line_total=it.price_at_purchase * it.quantity,
                )
                for it in items_by_order.get(order.id, [])
            ]
            customer = people.get(order.customer_id)
            driver = people.get(order.driver_id) if order.driver_id else None
            business = businesses.get(order.business_id)

            rows.append(
                {
                    "id": order.id,
                    "customer_id": order.customer_id,
                    "business_id": order.business_id,
                    "driver_id": order.driver_id,
                    "status": order.status,
                    "delivery_address_text": order.delivery_address_text,
                    "order_total_amount": order.order_total_amount,
                    "delivery_fee": order.delivery_fee,
                    "payment_method": order.payment_method,
                    "special_instructions": order.special_instructions,
                    "created_at": order.created_at,
                    "updated_at": order.updated_at,
                    "business_name": business.business_name if business else None,
                    "customer_name": customer.full_name if customer else None,
                    "customer_phone": customer.phone_number if customer else None,
                    "driver_name": driver.full_name if driver else None,
                    "items": item_dtos,
                    "allowed_transitions": allowed_transitions(order.status, actor),
                }
            )
        return rows
