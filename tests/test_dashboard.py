from decimal import Decimal

from conftest import API, auth_headers
from tuktuk.models.profile import Role
from tuktuk.routers.dashboard import service


def test_every_role_has_a_builder():
    assert set(service._builders) == set(Role)


def test_customer_dashboard(client, factory, customer, business):
    factory.order(customer=customer, business=business, code="9876")
    factory.cart_item(customer, factory.product(business, price="20.00"))

    body = client.get(f"{API}/dashboard", headers=auth_headers(customer)).json()

    assert body["role"] == "Customer"
    assert body["recent_orders"][0]["delivery_confirmation_code"] == "9876"
    assert Decimal(body["cart"]["total_price"]) == Decimal("45.00")


def test_vendor_dashboard_counts_and_revenue(client, factory, vendor, business):
    factory.order(business=business, status="Pending")
    factory.order(business=business, status="Delivered", total="80.00")
    factory.order(business=business, status="Cancelled")

    body = client.get(f"{API}/dashboard", headers=auth_headers(vendor)).json()

    assert body["role"] == "Vendor"
    assert body["order_counts"]["Pending"] == 1
    assert body["order_counts"]["Delivered"] == 1
    assert len(body["open_orders"]) == 1
    assert Decimal(body["delivered_revenue"]) == Decimal("80.00")


def test_vendor_dashboard_before_registration(client, vendor):
    body = client.get(f"{API}/dashboard", headers=auth_headers(vendor)).json()

    assert body["role"] == "Vendor"
    assert body["business"] is None


def test_driver_dashboard(client, factory, driver):
    factory.order(status="Confirmed")
    factory.order(status="Ready_for_Pickup", driver=driver)

    body = client.get(f"{API}/dashboard", headers=auth_headers(driver)).json()

    assert body["role"] == "Driver"
    assert body["available_order_count"] == 1
    assert len(body["active_deliveries"]) == 1


def test_admin_dashboard(client, factory, admin):
    factory.business(approval_status="Pending")

    body = client.get(f"{API}/dashboard", headers=auth_headers(admin)).json()

    assert body["role"] == "Admin"
    assert len(body["pending_businesses"]) == 1
    assert body["platform_stats"]["pending_businesses"] == 1
