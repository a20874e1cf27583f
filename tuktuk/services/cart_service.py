# tuktuk/services/cart_service.py
import uuid
from decimal import Decimal

from fastapi import HTTPException, status
from sqlmodel import Session

from tuktuk.core.config import get_settings
from tuktuk.models.cart import CartItem
from tuktuk.models.product import Product
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.cart_repo import CartRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.schemas.cart import (
    CartItemCreate,
    CartItemRead,
    CartItemUpdate,
    CartSummary,
    CartVendorGroup,
)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - ensure only customers use the cart (via router dependency)
      - validate product existence, availability and vendor approval
      - price lines at the product's *current* price
      - group lines by vendor, since checkout creates one order per vendor
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        business_repo: BusinessRepository,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.business_repo = business_repo

    # ---- internal helpers ----

    def _get_orderable_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        if not product.is_available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product is not available",
            )
        business = self.business_repo.get_by_id(session, product.business_id)
        if not business or business.approval_status != "Approved":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Vendor is not accepting orders",
            )
        return product

    # ---- public operations ----

    def list_items(self, session: Session, customer_id: uuid.UUID) -> list[CartItem]:
        return self.cart_repo.list_for_customer(session, customer_id)

    def get_cart_summary(
        self,
        session: Session,
        customer_id: uuid.UUID,
    ) -> CartSummary:
        """
        Return the cart grouped by vendor:
          - lines at current price with line_total
          - per-vendor subtotal, delivery fee and total
          - total_quantity and grand total_price
        """
        delivery_fee = get_settings().DELIVERY_FEE
        items = self.cart_repo.list_for_customer(session, customer_id)
        products = self.product_repo.get_many(session, (it.product_id for it in items))

        lines_by_business: dict[uuid.UUID, list[CartItemRead]] = {}
        total_qty = 0

        for it in items:
            product = products.get(it.product_id)
            if product is None:
                continue
            line_total = product.price * it.quantity
            total_qty += it.quantity
            lines_by_business.setdefault(product.business_id, []).append(
                CartItemRead(
                    product_id=product.id,
                    product_name=product.name,
                    image_url=product.image_url,
                    quantity=it.quantity,
                    unit_price=product.price,
                    line_total=line_total,
                    is_available=product.is_available,
                )
            )

        groups: list[CartVendorGroup] = []
        grand_total = Decimal("0.00")
        for business_id, lines in lines_by_business.items():
            business = self.business_repo.get_by_id(session, business_id)
            subtotal = sum((line.line_total for line in lines), Decimal("0.00"))
            total = subtotal + delivery_fee
            grand_total += total
            groups.append(
                CartVendorGroup(
                    business_id=business_id,
                    business_name=business.business_name if business else "",
                    items=lines,
                    subtotal=subtotal,
                    delivery_fee=delivery_fee,
                    total=total,
                )
            )

        return CartSummary(
            groups=groups,
            total_quantity=total_qty,
            total_price=grand_total,
        )

    def add_to_cart(
        self,
        session: Session,
        customer_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> CartSummary:
        """
        Add a product to the customer's cart, merging with an existing line.
        """
        product = self._get_orderable_product(session, payload.product_id)
        existing = self.cart_repo.get_item(session, customer_id, product.id)

        if existing:
            existing.quantity += payload.quantity
            self.cart_repo.update(session, existing)
        else:
            self.cart_repo.create(
                session,
                CartItem(
                    customer_id=customer_id,
                    product_id=product.id,
                    quantity=payload.quantity,
                ),
            )

        return self.get_cart_summary(session, customer_id)

    def update_quantity(
        self,
        session: Session,
        customer_id: uuid.UUID,
        product_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartSummary:
        """
        Set the quantity of a cart line. Zero or less removes the line.
        """
        item = self.cart_repo.get_item(session, customer_id, product_id)
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not in cart",
            )

        if payload.quantity <= 0:
            self.cart_repo.delete(session, item)
        else:
            item.quantity = payload.quantity
            self.cart_repo.update(session, item)

        return self.get_cart_summary(session, customer_id)

    def remove_item(
        self,
        session: Session,
        customer_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> CartSummary:
        item = self.cart_repo.get_item(session, customer_id, product_id)
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not found in cart",
            )

        self.cart_repo.delete(session, item)
        return self.get_cart_summary(session, customer_id)

    def clear_cart(
        self,
        session: Session,
        customer_id: uuid.UUID,
    ) -> CartSummary:
        """
        Clear all items from the cart and return an empty summary.
        """
        self.cart_repo.clear_customer_cart(session, customer_id)
        return CartSummary(groups=[], total_quantity=0, total_price=Decimal("0.00"))
