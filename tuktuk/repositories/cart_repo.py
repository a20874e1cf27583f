# tuktuk/repositories/cart_repo.py
import uuid

from sqlmodel import Session, select

from tuktuk.models.cart import CartItem


class CartRepository:

    # Get items for a customer
    def list_for_customer(self, session: Session, customer_id: uuid.UUID) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.customer_id == customer_id)
            .order_by(CartItem.created_at)
        )
        return list(session.exec(stmt).all())

    def get_item(
        self, session: Session, customer_id: uuid.UUID, product_id: uuid.UUID
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.customer_id == customer_id, CartItem.product_id == product_id
        )
        return session.exec(stmt).first()

    # CRUD
    def create(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def update(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.commit()

    def clear_customer_cart(self, session: Session, customer_id: uuid.UUID) -> None:
        for row in self.list_for_customer(session, customer_id):
            session.delete(row)
        session.commit()
