from decimal import Decimal
from types import SimpleNamespace

from conftest import API, auth_headers
from tuktuk.services.accounting_service import summarize_vendor


def _entry(transaction_type, amount):
    return SimpleNamespace(transaction_type=transaction_type, amount=Decimal(amount))


def test_summary_is_revenue_minus_payouts():
    balance = summarize_vendor(
        [
            _entry("SaleRevenue", "100.00"),
            _entry("SaleRevenue", "50.00"),
            _entry("VendorPayout", "80.00"),
            _entry("DeliveryFee", "25.00"),
        ]
    )

    assert balance.total_revenue == Decimal("150.00")
    assert balance.total_paid_out == Decimal("80.00")
    assert balance.outstanding_balance == Decimal("70.00")
    assert balance.transaction_count == 4


def test_summary_of_nothing_is_zero():
    balance = summarize_vendor([])

    assert balance.total_revenue == Decimal("0.00")
    assert balance.total_paid_out == Decimal("0.00")
    assert balance.outstanding_balance == Decimal("0.00")
    assert balance.transaction_count == 0


def test_admin_overview_lists_approved_vendors(client, factory, admin):
    shop = factory.business(business_name="Alpha Eats")
    idle = factory.business(business_name="Beta Bites")
    factory.business(business_name="Gamma Pending", approval_status="Pending")
    factory.ledger(shop, "SaleRevenue", "100.00")
    factory.ledger(shop, "SaleRevenue", "50.00")
    factory.ledger(shop, "VendorPayout", "80.00", payout_status="Paid")

    resp = client.get(f"{API}/accounting/vendors", headers=auth_headers(admin))

    assert resp.status_code == 200
    body = resp.json()
    names = [v["business"]["business_name"] for v in body["vendors"]]
    assert names == ["Alpha Eats", "Beta Bites"]
    by_id = {v["business"]["id"]: v for v in body["vendors"]}
    assert Decimal(by_id[str(shop.id)]["outstanding_balance"]) == Decimal("70.00")
    assert Decimal(by_id[str(idle.id)]["outstanding_balance"]) == Decimal("0.00")
    assert Decimal(body["total_outstanding"]) == Decimal("70.00")


def test_log_payout_appends_paid_entry(client, factory, admin, business, notifier):
    factory.ledger(business, "SaleRevenue", "40.00")

    resp = client.post(
        f"{API}/accounting/vendors/{business.id}/payouts",
        json={"amount": "100.00", "reference_notes": "EFT ref 991"},
        headers=auth_headers(admin),
    )

    assert resp.status_code == 201
    assert resp.json()["transaction_type"] == "VendorPayout"
    assert resp.json()["payout_status"] == "Paid"
    assert notifier.tables() == ["accounting_ledger"]

    detail = client.get(
        f"{API}/accounting/vendors/{business.id}", headers=auth_headers(admin)
    ).json()
    assert Decimal(detail["balance"]["outstanding_balance"]) == Decimal("-60.00")
    assert len(detail["entries"]) == 2


def test_payout_must_be_positive(client, admin, business):
    resp = client.post(
        f"{API}/accounting/vendors/{business.id}/payouts",
        json={"amount": "0"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 422


def test_vendor_reads_own_balance(client, factory, vendor, business):
    factory.ledger(business, "SaleRevenue", "12.50")

    resp = client.get(f"{API}/accounting/me", headers=auth_headers(vendor))

    assert resp.status_code == 200
    assert Decimal(resp.json()["balance"]["total_revenue"]) == Decimal("12.50")


def test_accounting_admin_only(client, vendor):
    assert client.get(f"{API}/accounting/vendors", headers=auth_headers(vendor)).status_code == 403
