# tuktuk/repositories/product_repo.py
import uuid
from typing import Iterable

from sqlalchemy import delete
from sqlmodel import Session, select

from tuktuk.models.cart import CartItem
from tuktuk.models.product import Category, Product


class ProductRepository:
    """
    Data access layer for Product & Category.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_many(
        self,
        session: Session,
        product_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        ids = set(product_ids)
        if not ids:
            return {}
        stmt = select(Product).where(Product.id.in_(ids))
        return {p.id: p for p in session.exec(stmt).all()}

    def list_for_business(
        self,
        session: Session,
        business_id: uuid.UUID,
        only_available: bool = False,
    ) -> list[Product]:
        stmt = select(Product).where(Product.business_id == business_id)
        if only_available:
            stmt = stmt.where(Product.is_available == True)  # noqa: E712
            stmt = stmt.order_by(Product.name)
        else:
            stmt = stmt.order_by(Product.created_at.desc())
        return list(session.exec(stmt).all())

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def create_many(self, session: Session, products: list[Product]) -> list[Product]:
        session.add_all(products)
        session.commit()
        for product in products:
            session.refresh(product)
        return products

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        """
        Delete a product together with any cart lines holding it. Order
        items still block the delete through their foreign key.
        """
        session.connection().execute(
            delete(CartItem).where(CartItem.product_id == product.id)
        )
        session.delete(product)
        session.commit()

    # ----- Categories -----

    def list_categories(self, session: Session) -> list[Category]:
        stmt = select(Category).order_by(Category.name)
        return list(session.exec(stmt).all())

    def get_category(self, session: Session, category_id: uuid.UUID) -> Category | None:
        return session.get(Category, category_id)

    def get_category_by_name(self, session: Session, name: str) -> Category | None:
        stmt = select(Category).where(Category.name == name)
        return session.exec(stmt).first()

    def create_category(self, session: Session, category: Category) -> Category:
        session.add(category)
        session.commit()
        session.refresh(category)
        return category
