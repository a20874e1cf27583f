import uuid
from decimal import Decimal

from sqlmodel import select

from conftest import API, auth_headers
from tuktuk.core.config import get_settings
from tuktuk.models.ledger import AccountingLedger
from tuktuk.models.order import Order
from tuktuk.models.profile import Role


def _complete(client, driver, order_id, code):
    return client.post(
        f"{API}/deliveries/{order_id}/complete",
        json={"confirmation_code": code},
        headers=auth_headers(driver),
    )


def test_start_delivery_moves_owned_order_out(client, factory, driver, notifier):
    order = factory.order(status="Ready_for_Pickup", driver=driver)

    resp = client.post(f"{API}/deliveries/{order.id}/start", headers=auth_headers(driver))

    assert resp.status_code == 200
    assert resp.json()["status"] == "Out_for_Delivery"
    assert notifier.tables() == ["orders"]


def test_start_delivery_of_someone_elses_order_conflicts(client, factory, driver):
    other = factory.profile(Role.DRIVER)
    order = factory.order(status="Ready_for_Pickup", driver=other)

    resp = client.post(f"{API}/deliveries/{order.id}/start", headers=auth_headers(driver))

    assert resp.status_code == 409


def test_start_delivery_unknown_order_is_404(client, driver):
    resp = client.post(f"{API}/deliveries/{uuid.uuid4()}/start", headers=auth_headers(driver))
    assert resp.status_code == 404


def test_wrong_code_leaves_order_untouched(client, factory, driver, session):
    order = factory.order(status="Out_for_Delivery", driver=driver, code="4821")

    resp = _complete(client, driver, order.id, "1111")

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid confirmation code"
    session.expire_all()
    assert session.get(Order, order.id).status == "Out_for_Delivery"
    assert session.exec(select(AccountingLedger)).all() == []


def test_matching_code_delivers_once_and_books_ledger(client, factory, driver, session, notifier):
    business = factory.business()
    order = factory.order(
        business=business,
        status="Out_for_Delivery",
        driver=driver,
        code="0427",
        total="240.00",
    )

    first = _complete(client, driver, order.id, "0427")
    second = _complete(client, driver, order.id, "0427")

    assert first.status_code == 200
    assert first.json()["status"] == "Delivered"
    assert second.status_code == 409

    entries = session.exec(
        select(AccountingLedger).where(AccountingLedger.order_id == order.id)
    ).all()
    amounts = {e.transaction_type: e.amount for e in entries}
    assert amounts == {
        "SaleRevenue": Decimal("215.00"),
        "DeliveryFee": Decimal("25.00"),
    }
    assert all(e.payout_status == "Owed" for e in entries)
    assert all(e.business_id == business.id for e in entries)
    assert notifier.tables() == ["orders", "accounting_ledger", "accounting_ledger"]


def test_code_must_be_four_digits(client, factory, driver):
    order = factory.order(status="Out_for_Delivery", driver=driver)

    assert _complete(client, driver, order.id, "12a4").status_code == 422
    assert _complete(client, driver, order.id, "12345").status_code == 422


def test_available_and_my_deliveries_lists(client, factory, driver):
    claimable = factory.order(status="Confirmed")
    factory.order(status="Pending")
    mine = factory.order(status="Out_for_Delivery", driver=driver)
    factory.order(status="Delivered", driver=driver)

    available = client.get(f"{API}/deliveries/available", headers=auth_headers(driver))
    assigned = client.get(f"{API}/deliveries/mine", headers=auth_headers(driver))

    assert [o["id"] for o in available.json()] == [str(claimable.id)]
    assert [o["id"] for o in assigned.json()] == [str(mine.id)]


def test_update_location(client, driver):
    resp = client.put(
        f"{API}/deliveries/location",
        json={"latitude": -33.92, "longitude": 18.42},
        headers=auth_headers(driver),
    )
    assert resp.status_code == 200

    bad = client.put(
        f"{API}/deliveries/location",
        json={"latitude": 123, "longitude": 18.42},
        headers=auth_headers(driver),
    )
    assert bad.status_code == 422


def test_ledger_uses_fee_charged_at_checkout(
    client, factory, customer, business, driver, session, monkeypatch
):
    product = factory.product(business, price="100.00")
    factory.cart_item(customer, product, quantity=1)
    placed = client.post(
        f"{API}/orders/checkout",
        json={"delivery_address_text": "12 Long Street"},
        headers=auth_headers(customer),
    )
    assert placed.status_code == 201
    body = placed.json()["orders"][0]
    assert Decimal(body["delivery_fee"]) == Decimal("25.00")
    assert Decimal(body["order_total_amount"]) == Decimal("125.00")

    order = session.get(Order, uuid.UUID(body["id"]))
    order.status = "Out_for_Delivery"
    order.driver_id = driver.id
    session.add(order)
    session.commit()

    monkeypatch.setattr(get_settings(), "DELIVERY_FEE", Decimal("40.00"))
    resp = _complete(client, driver, order.id, body["delivery_confirmation_code"])

    assert resp.status_code == 200
    entries = session.exec(
        select(AccountingLedger).where(AccountingLedger.order_id == order.id)
    ).all()
    amounts = {e.transaction_type: e.amount for e in entries}
    assert amounts == {
        "SaleRevenue": Decimal("100.00"),
        "DeliveryFee": Decimal("25.00"),
    }
