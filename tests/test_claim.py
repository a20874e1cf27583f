import threading
import uuid

import pytest
from sqlalchemy.pool import NullPool
from sqlmodel import Session, SQLModel, create_engine

from conftest import API, Factory, RecordingNotifier, auth_headers
from tuktuk.models.order import Order
from tuktuk.models.profile import Role
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.cart_repo import CartRepository
from tuktuk.repositories.ledger_repo import LedgerRepository
from tuktuk.repositories.order_repo import OrderRepository
from tuktuk.repositories.product_repo import ProductRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.services.delivery_service import CLAIM_LOST_MESSAGE, DeliveryService
from tuktuk.services.order_service import OrderService


def test_claim_assigns_driver_and_forces_ready(client, factory, driver):
    order = factory.order(status="Confirmed")

    resp = client.post(f"{API}/deliveries/{order.id}/claim", headers=auth_headers(driver))

    assert resp.status_code == 200
    body = resp.json()
    assert body["claimed"] is True
    assert body["order"]["driver_id"] == str(driver.id)
    assert body["order"]["status"] == "Ready_for_Pickup"
    assert "delivery_confirmation_code" not in body["order"]


def test_second_claim_loses_without_error(client, factory, driver, session):
    other = factory.profile(Role.DRIVER)
    order = factory.order(status="Preparing")

    first = client.post(f"{API}/deliveries/{order.id}/claim", headers=auth_headers(driver))
    second = client.post(f"{API}/deliveries/{order.id}/claim", headers=auth_headers(other))

    assert first.json()["claimed"] is True
    assert second.status_code == 200
    assert second.json() == {
        "claimed": False,
        "message": CLAIM_LOST_MESSAGE,
        "order": None,
    }
    session.expire_all()
    assert session.get(Order, order.id).driver_id == driver.id


def test_claim_unknown_order_is_404(client, driver):
    resp = client.post(f"{API}/deliveries/{uuid.uuid4()}/claim", headers=auth_headers(driver))
    assert resp.status_code == 404


def test_pending_order_cannot_be_claimed(client, factory, driver):
    order = factory.order(status="Pending")

    resp = client.post(f"{API}/deliveries/{order.id}/claim", headers=auth_headers(driver))

    assert resp.json()["claimed"] is False


def test_claim_requires_driver_role(client, factory, customer):
    order = factory.order(status="Confirmed")
    resp = client.post(f"{API}/deliveries/{order.id}/claim", headers=auth_headers(customer))
    assert resp.status_code == 403


@pytest.fixture
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'claims.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        poolclass=NullPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


def test_concurrent_claims_have_exactly_one_winner(file_engine):
    with Session(file_engine) as setup:
        factory = Factory(setup)
        order_id = factory.order(status="Ready_for_Pickup").id
        drivers = [factory.profile(Role.DRIVER) for _ in range(8)]
        driver_ids = [d.id for d in drivers]

    order_repo = OrderRepository()
    profile_repo = ProfileRepository()
    service = DeliveryService(
        order_repo,
        LedgerRepository(),
        profile_repo,
        OrderService(
            order_repo,
            CartRepository(),
            ProductRepository(),
            BusinessRepository(),
            profile_repo,
        ),
    )
    barrier = threading.Barrier(len(driver_ids))
    results: list[bool] = []
    lock = threading.Lock()

    def attempt(driver_id):
        with Session(file_engine) as session:
            driver = profile_repo.get_by_id(session, driver_id)
            barrier.wait()
            result = service.claim_order(session, RecordingNotifier(), driver, order_id)
            with lock:
                results.append(result.claimed)

    threads = [threading.Thread(target=attempt, args=(d,)) for d in driver_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == len(driver_ids)
    assert results.count(True) == 1

    with Session(file_engine) as check:
        order = check.get(Order, order_id)
        assert order.driver_id in driver_ids
        assert order.status == "Ready_for_Pickup"
