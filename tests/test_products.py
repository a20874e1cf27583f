from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlmodel import select

from conftest import API, auth_headers
from tuktuk.models.cart import CartItem
from tuktuk.models.product import Category, Product
from tuktuk.services import product_service
from tuktuk.services.product_service import ProductService

CSV_HEADER = "name,description,price,category,image_url,is_available"


def test_parse_csv_skips_bad_rows_with_line_numbers():
    csv_text = "\n".join(
        [
            CSV_HEADER,
            "Pap & Wors,Classic plate,65.50,Mains,,true",
            ",No name,10.00,Mains,,true",
            "Free lunch,,0,Mains,,true",
            "Mystery,,abc,Mains,,true",
            "Koeksister,Syrupy,12,Desserts,,false",
        ]
    )

    rows, skipped = ProductService.parse_csv(csv_text)

    assert [r.name for r in rows] == ["Pap & Wors", "Koeksister"]
    assert rows[0].price == Decimal("65.50")
    assert rows[1].is_available is False
    assert [(s.line, s.reason) for s in skipped] == [
        (3, "Missing name"),
        (4, "Price must be positive"),
        (5, "Price must be positive"),
    ]


def test_parse_csv_headers_are_case_insensitive():
    rows, _ = ProductService.parse_csv(
        "Name,Description,PRICE,Category,Image_URL,Is_Available\nSamoosa,,8.00,,,true"
    )
    assert rows[0].name == "Samoosa"


def test_parse_csv_requires_all_columns():
    with pytest.raises(HTTPException) as exc:
        ProductService.parse_csv("name,price\nChips,20")
    assert exc.value.status_code == 400


def test_bulk_upload_preview_writes_nothing(client, vendor, business, session):
    resp = client.post(
        f"{API}/products/bulk",
        json={"csv_text": f"{CSV_HEADER}\nChakalaka,,30,Sides,,true", "preview": True},
        headers=auth_headers(vendor),
    )

    assert resp.status_code == 200
    assert len(resp.json()["parsed"]) == 1
    assert resp.json()["created"] == []
    assert session.exec(select(Product)).all() == []


def test_bulk_upload_creates_products_and_categories(client, vendor, business, session, notifier):
    csv_text = f"{CSV_HEADER}\nChakalaka,,30,Sides,,true\nPap,,15,Sides,,true\nMalva,,25,Desserts,,true"

    resp = client.post(
        f"{API}/products/bulk",
        json={"csv_text": csv_text},
        headers=auth_headers(vendor),
    )

    assert resp.status_code == 200
    assert len(resp.json()["created"]) == 3
    names = sorted(c.name for c in session.exec(select(Category)).all())
    assert names == ["Desserts", "Sides"]
    assert notifier.tables() == ["products"] * 3


def test_create_requires_positive_price(client, vendor, business):
    resp = client.post(
        f"{API}/products",
        json={"name": "Vetkoek", "price": "0"},
        headers=auth_headers(vendor),
    )
    assert resp.status_code == 422


def test_vendor_without_business_cannot_create(client, vendor):
    resp = client.post(
        f"{API}/products",
        json={"name": "Vetkoek", "price": "12.00"},
        headers=auth_headers(vendor),
    )
    assert resp.status_code == 404


def test_toggle_availability(client, factory, vendor, business):
    product = factory.product(business)

    first = client.post(
        f"{API}/products/{product.id}/toggle-availability", headers=auth_headers(vendor)
    )
    second = client.post(
        f"{API}/products/{product.id}/toggle-availability", headers=auth_headers(vendor)
    )

    assert first.json()["is_available"] is False
    assert second.json()["is_available"] is True


def test_vendor_cannot_edit_foreign_product(client, factory, vendor, business):
    foreign = factory.product(factory.business())

    resp = client.patch(
        f"{API}/products/{foreign.id}",
        json={"price": "1.00"},
        headers=auth_headers(vendor),
    )

    assert resp.status_code == 404


def test_delete_ordered_product_conflicts(client, factory, vendor, business, session):
    product = factory.product(business)
    factory.order(business=business, items=[(product, 1)])

    resp = client.delete(f"{API}/products/{product.id}", headers=auth_headers(vendor))

    assert resp.status_code == 409
    session.expire_all()
    assert session.get(Product, product.id) is not None


def test_delete_product_sitting_in_carts(client, factory, vendor, business, customer, session):
    product = factory.product(business)
    factory.cart_item(customer, product, quantity=3)

    resp = client.delete(f"{API}/products/{product.id}", headers=auth_headers(vendor))

    assert resp.status_code == 204
    session.expire_all()
    assert session.get(Product, product.id) is None
    assert session.exec(select(CartItem)).all() == []


def test_ordered_product_keeps_cart_lines_when_delete_refused(
    client, factory, vendor, business, customer, session
):
    product = factory.product(business)
    factory.order(business=business, items=[(product, 1)])
    factory.cart_item(customer, product)

    resp = client.delete(f"{API}/products/{product.id}", headers=auth_headers(vendor))

    assert resp.status_code == 409
    session.expire_all()
    assert len(session.exec(select(CartItem)).all()) == 1


def test_delete_product_removes_image(client, factory, vendor, business, notifier, monkeypatch):
    deleted = []
    monkeypatch.setattr(product_service, "delete_public_url", deleted.append)
    product = factory.product(business, image_url="https://x/storage/v1/object/public/product-images/a.png")

    resp = client.delete(f"{API}/products/{product.id}", headers=auth_headers(vendor))

    assert resp.status_code == 204
    assert deleted == ["https://x/storage/v1/object/public/product-images/a.png"]
    assert notifier.events[-1].event == "DELETE"


def test_image_upload_replaces_previous(client, factory, vendor, business, monkeypatch):
    uploads = []
    deleted = []

    def fake_upload(path, file_bytes, content_type):
        uploads.append((path, content_type))
        return f"https://cdn.example/{path}"

    monkeypatch.setattr(product_service, "upload_to_storage", fake_upload)
    monkeypatch.setattr(product_service, "delete_public_url", deleted.append)
    product = factory.product(business, image_url="https://cdn.example/old.png")

    resp = client.post(
        f"{API}/products/{product.id}/image",
        files={"file": ("photo.png", b"\x89PNG fake", "image/png")},
        headers=auth_headers(vendor),
    )

    assert resp.status_code == 200
    path, content_type = uploads[0]
    assert path.startswith(f"{business.id}/") and path.endswith(".png")
    assert content_type == "image/png"
    assert resp.json()["image_url"] == f"https://cdn.example/{path}"
    assert deleted == ["https://cdn.example/old.png"]


def test_image_upload_rejects_unsupported_type(client, factory, vendor, business):
    product = factory.product(business)

    resp = client.post(
        f"{API}/products/{product.id}/image",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(vendor),
    )

    assert resp.status_code == 400
