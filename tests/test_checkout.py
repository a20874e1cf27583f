from decimal import Decimal

from sqlmodel import select

from conftest import API, auth_headers
from tuktuk.models.cart import CartItem
from tuktuk.models.order import Order, OrderItem

CHECKOUT = {"delivery_address_text": "7 Beach Road, Muizenberg", "payment_method": "COD"}


def test_single_vendor_total_includes_delivery_fee(client, factory, customer, business, notifier):
    cake = factory.product(business, price="85.00")
    tart = factory.product(business, price="45.00")
    factory.cart_item(customer, cake, quantity=2)
    factory.cart_item(customer, tart, quantity=1)

    resp = client.post(f"{API}/orders/checkout", json=CHECKOUT, headers=auth_headers(customer))

    assert resp.status_code == 201
    body = resp.json()
    assert body["all_succeeded"] is True
    assert body["cart_cleared"] is True
    assert len(body["orders"]) == 1
    order = body["orders"][0]
    assert Decimal(order["order_total_amount"]) == Decimal("240.00")
    assert order["status"] == "Pending"
    assert len(order["delivery_confirmation_code"]) == 4
    assert order["delivery_confirmation_code"].isdigit()
    assert notifier.tables() == ["orders"]


def test_one_order_per_vendor(client, factory, customer, session):
    first = factory.business()
    second = factory.business()
    factory.cart_item(customer, factory.product(first, price="10.00"))
    factory.cart_item(customer, factory.product(second, price="20.00"))

    resp = client.post(f"{API}/orders/checkout", json=CHECKOUT, headers=auth_headers(customer))

    assert resp.status_code == 201
    assert {o["business_id"] for o in resp.json()["orders"]} == {str(first.id), str(second.id)}
    assert len(session.exec(select(Order)).all()) == 2


def test_partial_failure_reports_both_and_clears_cart(client, factory, customer, session):
    open_shop = factory.business()
    closed_shop = factory.business()
    factory.cart_item(customer, factory.product(open_shop, price="30.00"))
    factory.cart_item(customer, factory.product(closed_shop, price="40.00"))
    closed_shop.approval_status = "Rejected"
    session.add(closed_shop)
    session.commit()

    resp = client.post(f"{API}/orders/checkout", json=CHECKOUT, headers=auth_headers(customer))

    assert resp.status_code == 207
    body = resp.json()
    assert body["all_succeeded"] is False
    assert [o["business_id"] for o in body["orders"]] == [str(open_shop.id)]
    assert [f["business_id"] for f in body["failures"]] == [str(closed_shop.id)]
    assert session.exec(select(CartItem)).all() == []


def test_all_groups_failing_is_400_and_still_clears_cart(client, factory, customer, business, session):
    product = factory.product(business, price="30.00")
    factory.cart_item(customer, product)
    product.is_available = False
    session.add(product)
    session.commit()

    resp = client.post(f"{API}/orders/checkout", json=CHECKOUT, headers=auth_headers(customer))

    assert resp.status_code == 400
    assert resp.json()["detail"]["cart_cleared"] is True
    assert session.exec(select(Order)).all() == []
    assert session.exec(select(CartItem)).all() == []


def test_empty_cart_is_rejected(client, customer):
    resp = client.post(f"{API}/orders/checkout", json=CHECKOUT, headers=auth_headers(customer))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cart is empty"


def test_price_snapshot_survives_catalog_change(client, factory, customer, vendor, business, session):
    product = factory.product(business, price="60.00")
    factory.cart_item(customer, product, quantity=1)
    order_id = client.post(
        f"{API}/orders/checkout", json=CHECKOUT, headers=auth_headers(customer)
    ).json()["orders"][0]["id"]

    resp = client.patch(
        f"{API}/products/{product.id}",
        json={"price": "99.00"},
        headers=auth_headers(vendor),
    )
    assert resp.status_code == 200

    session.expire_all()
    item = session.exec(select(OrderItem)).one()
    assert item.price_at_purchase == Decimal("60.00")

    detail = client.get(f"{API}/orders/me/{order_id}", headers=auth_headers(customer)).json()
    assert Decimal(detail["items"][0]["price_at_purchase"]) == Decimal("60.00")
    assert Decimal(detail["order_total_amount"]) == Decimal("85.00")


def test_customer_sees_only_own_orders(client, factory, customer):
    stranger_order = factory.order()

    resp = client.get(f"{API}/orders/me/{stranger_order.id}", headers=auth_headers(customer))

    assert resp.status_code == 404
