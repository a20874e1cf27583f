import os
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# Settings are read at import time; configure them before importing tuktuk.
TEST_JWT_SECRET = "test-jwt-secret-for-tuktuk"
os.environ["SUPABASE_URL"] = "https://example.supabase.co"
os.environ["SUPABASE_KEY"] = "anon-test-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["REDIS_URL"] = "redis://localhost:6399/0"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from tuktuk.core.realtime import get_notifier  # noqa: E402
from tuktuk.database import get_session  # noqa: E402
from tuktuk.main import app  # noqa: E402
from tuktuk.models.business import Business  # noqa: E402
from tuktuk.models.cart import CartItem  # noqa: E402
from tuktuk.models.ledger import AccountingLedger  # noqa: E402
from tuktuk.models.order import Order, OrderItem  # noqa: E402
from tuktuk.models.product import Product  # noqa: E402
from tuktuk.models.profile import Profile, Role  # noqa: E402

API = "/api/v1"


class RecordingNotifier:
    """Stands in for ChangeNotifier; keeps published events in memory."""

    def __init__(self):
        self.events = []

    def publish(self, change) -> None:
        self.events.append(change)

    async def stream(self, table, filters):
        return
        yield

    def tables(self) -> list[str]:
        return [e.table for e in self.events]


def make_token(profile_id: uuid.UUID, expires_in: int = 3600) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(profile_id),
        "aud": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
    }
    return jwt.encode(claims, TEST_JWT_SECRET, algorithm="HS256")


def auth_headers(profile: Profile) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(profile.id)}"}


class Factory:
    """Creates committed rows for tests."""

    def __init__(self, session: Session):
        self.session = session

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def profile(self, role: Role = Role.CUSTOMER, **kwargs) -> Profile:
        uid = kwargs.pop("id", None) or uuid.uuid4()
        data = {
            "id": uid,
            "full_name": f"{role.value} {str(uid)[:6]}",
            "email": f"{str(uid)[:8]}@example.com",
            "phone_number": "0820000000",
            "role": role.value,
            "is_active": True,
        }
        data.update(kwargs)
        return self._save(Profile(**data))

    def business(
        self,
        owner: Profile | None = None,
        approval_status: str = "Approved",
        **kwargs,
    ) -> Business:
        owner = owner or self.profile(Role.VENDOR)
        data = {
            "user_id": owner.id,
            "business_name": f"Shop {str(owner.id)[:6]}",
            "address_text": "12 Long Street, Cape Town",
            "approval_status": approval_status,
        }
        data.update(kwargs)
        return self._save(Business(**data))

    def product(
        self,
        business: Business,
        price: str = "50.00",
        name: str | None = None,
        **kwargs,
    ) -> Product:
        return self._save(
            Product(
                business_id=business.id,
                name=name or f"Item {uuid.uuid4().hex[:6]}",
                price=Decimal(price),
                **kwargs,
            )
        )

    def cart_item(self, customer: Profile, product: Product, quantity: int = 1) -> CartItem:
        return self._save(
            CartItem(customer_id=customer.id, product_id=product.id, quantity=quantity)
        )

    def order(
        self,
        customer: Profile | None = None,
        business: Business | None = None,
        status: str = "Pending",
        total: str = "125.00",
        delivery_fee: str = "25.00",
        code: str = "1234",
        driver: Profile | None = None,
        items: list[tuple[Product, int]] | None = None,
        **kwargs,
    ) -> Order:
        customer = customer or self.profile(Role.CUSTOMER)
        business = business or self.business()
        order = self._save(
            Order(
                customer_id=customer.id,
                business_id=business.id,
                driver_id=driver.id if driver else None,
                status=status,
                delivery_address_text="5 Main Road",
                order_total_amount=Decimal(total),
                delivery_fee=Decimal(delivery_fee),
                payment_method="COD",
                delivery_confirmation_code=code,
                **kwargs,
            )
        )
        for product, quantity in items or []:
            self._save(
                OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    quantity=quantity,
                    price_at_purchase=product.price,
                )
            )
        return order

    def ledger(
        self,
        business: Business,
        transaction_type: str,
        amount: str,
        payout_status: str = "Owed",
    ) -> AccountingLedger:
        return self._save(
            AccountingLedger(
                business_id=business.id,
                transaction_type=transaction_type,
                amount=Decimal(amount),
                payout_status=payout_status,
            )
        )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def factory(session):
    return Factory(session)


@pytest.fixture
def client(session, notifier):
    def _get_session():
        yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def customer(factory):
    return factory.profile(Role.CUSTOMER)


@pytest.fixture
def vendor(factory):
    return factory.profile(Role.VENDOR)


@pytest.fixture
def driver(factory):
    return factory.profile(Role.DRIVER)


@pytest.fixture
def admin(factory):
    return factory.profile(Role.ADMIN)


@pytest.fixture
def business(factory, vendor):
    return factory.business(owner=vendor)
