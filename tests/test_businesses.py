from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from conftest import API, auth_headers
from tuktuk.models.business import AuditLog, Business
from tuktuk.models.profile import Role
from tuktuk.routers import admin as admin_router


def test_customers_browse_only_approved(client, factory, customer):
    approved = factory.business(business_name="Bunny Chow Bar")
    factory.business(business_name="Hidden Kitchen", approval_status="Pending")

    resp = client.get(f"{API}/businesses", headers=auth_headers(customer))

    assert resp.status_code == 200
    assert [b["id"] for b in resp.json()] == [str(approved.id)]


def test_storefront_shows_available_products_by_name(client, factory, customer, business):
    factory.product(business, name="Vetkoek")
    factory.product(business, name="Biltong")
    factory.product(business, name="Sold out", is_available=False)

    resp = client.get(f"{API}/businesses/{business.id}", headers=auth_headers(customer))

    assert resp.status_code == 200
    assert [p["name"] for p in resp.json()["products"]] == ["Biltong", "Vetkoek"]


def test_pending_storefront_is_hidden(client, factory, customer):
    pending = factory.business(approval_status="Pending")

    resp = client.get(f"{API}/businesses/{pending.id}", headers=auth_headers(customer))

    assert resp.status_code == 404


def test_vendor_updates_own_business(client, vendor, business, notifier):
    resp = client.patch(
        f"{API}/businesses/me",
        json={"bank_account_details": "FNB 6200 1234"},
        headers=auth_headers(vendor),
    )

    assert resp.status_code == 200
    assert resp.json()["bank_account_details"] == "FNB 6200 1234"
    assert resp.json()["approval_status"] == "Approved"
    assert notifier.tables() == ["businesses"]


def test_vendor_cannot_self_approve(client, factory, vendor):
    factory.business(owner=vendor, approval_status="Pending")

    resp = client.patch(
        f"{API}/businesses/me",
        json={"approval_status": "Approved"},
        headers=auth_headers(vendor),
    )

    assert resp.status_code == 422


def test_admin_approval_writes_audit_entry(client, factory, admin, session, notifier):
    pending = factory.business(approval_status="Pending")

    resp = client.patch(
        f"{API}/admin/businesses/{pending.id}/approval",
        json={"status": "Approved", "notes": "Documents verified"},
        headers=auth_headers(admin),
    )

    assert resp.status_code == 200
    assert resp.json()["approval_status"] == "Approved"
    entry = session.exec(select(AuditLog)).one()
    assert entry.action == "BUSINESS_APPROVED"
    assert entry.user_id == admin.id
    assert entry.details["business_id"] == str(pending.id)
    assert notifier.tables() == ["businesses"]


def test_failed_audit_write_keeps_decision(client, factory, admin, session, monkeypatch):
    pending = factory.business(approval_status="Pending")

    def broken_audit(*args, **kwargs):
        raise SQLAlchemyError("audit table unavailable")

    monkeypatch.setattr(admin_router.service.business_repo, "add_audit_entry", broken_audit)

    resp = client.patch(
        f"{API}/admin/businesses/{pending.id}/approval",
        json={"status": "Rejected"},
        headers=auth_headers(admin),
    )

    assert resp.status_code == 200
    session.expire_all()
    assert session.get(Business, pending.id).approval_status == "Rejected"


def test_admin_search_matches_owner_email(client, factory, admin):
    owner = factory.profile(Role.VENDOR, email="thandi@kasi-eats.co.za")
    match = factory.business(owner=owner, approval_status="Pending")
    factory.business(approval_status="Pending")

    resp = client.get(
        f"{API}/admin/businesses",
        params={"search": "KASI-EATS"},
        headers=auth_headers(admin),
    )

    assert [b["id"] for b in resp.json()] == [str(match.id)]
    assert resp.json()[0]["owner_email"] == "thandi@kasi-eats.co.za"


def test_admin_routes_reject_vendors(client, vendor):
    resp = client.get(f"{API}/admin/businesses", headers=auth_headers(vendor))
    assert resp.status_code == 403
