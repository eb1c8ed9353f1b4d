import pytest

from csystem import models


@pytest.fixture
def supplier(make_person):
    return make_person("SUPPLIER")


@pytest.fixture
def order(db, supplier, make_person):
    customer = make_person("CLUB")
    record = models.Order(order_no="JO-2026-0001", supplier_id=supplier.id, customer_id=customer.id,
                          customer_name=customer.name, status="PRODUCTION", total_amount=1250000)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


COURIER = {
    "courier_name": "JNE",
    "awb_number": "JNE123456789",
    "tracking_url": "https://track.example/JNE123456789",
    "shipping_cost": 45000,
    "estimated_delivery": "2026-07-01",
}


def test_supplier_lists_own_orders(client, make_person, auth_headers, supplier, order):
    rival = make_person("SUPPLIER")
    assert [o["order_no"] for o in client.get("/api/shipping", headers=auth_headers(supplier)).json()] == ["JO-2026-0001"]
    assert client.get("/api/shipping", headers=auth_headers(rival)).json() == []


def test_courier_info_is_null_before_shipping(client, auth_headers, supplier, order):
    response = client.get(f"/api/shipping/{order.id}", headers=auth_headers(supplier))
    assert response.status_code == 200
    assert response.json() is None


def test_upsert_marks_order_shipped(client, db, auth_headers, supplier, order):
    headers = auth_headers(supplier)
    response = client.post(f"/api/shipping/{order.id}", headers=headers, json=COURIER)
    assert response.status_code == 200
    info = response.json()
    assert info["awb_number"] == "JNE123456789"
    assert info["shipping_cost"] == 45000
    assert info["shipped_at"] is not None

    db.expire_all()
    assert db.get(models.Order, order.id).status == "SHIPPED"

    tracking = client.get(f"/api/shipping/{order.id}/tracking", headers=headers).json()
    assert [t["description"] for t in tracking] == ["Shipping info updated: JNE - AWB: JNE123456789"]
    assert tracking[0]["updated_by"] == supplier.id


def test_second_upsert_updates_the_same_record(client, auth_headers, supplier, order):
    headers = auth_headers(supplier)
    first = client.post(f"/api/shipping/{order.id}", headers=headers, json=COURIER).json()
    second = client.post(f"/api/shipping/{order.id}", headers=headers,
                         json=dict(COURIER, courier_name="SiCepat", awb_number="SC-1")).json()
    assert second["id"] == first["id"]
    assert client.get(f"/api/shipping/{order.id}", headers=headers).json()["courier_name"] == "SiCepat"
    assert len(client.get(f"/api/shipping/{order.id}/tracking", headers=headers).json()) == 2


def test_manpower_works_for_their_supplier(client, db, make_person, auth_headers, supplier, order):
    worker = make_person("MANPOWER")
    db.add(models.ManpowerData(person_id=worker.id, supplier_id=supplier.id, position="Packing"))
    db.commit()

    response = client.post(f"/api/shipping/{order.id}", headers=auth_headers(worker), json=COURIER)
    assert response.status_code == 200


def test_other_supplier_is_refused(client, make_person, auth_headers, order):
    rival = make_person("SUPPLIER")
    response = client.post(f"/api/shipping/{order.id}", headers=auth_headers(rival), json=COURIER)
    assert response.status_code == 403


def test_admin_sees_every_order(client, admin, auth_headers, order):
    assert len(client.get("/api/shipping", headers=auth_headers(admin)).json()) == 1
    assert client.get(f"/api/shipping/{order.id}", headers=auth_headers(admin)).status_code == 200


def test_missing_order_and_bad_cost(client, auth_headers, supplier, order):
    headers = auth_headers(supplier)
    missing = client.get("/api/shipping/nope", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "ORDER_NOT_FOUND"

    negative = client.post(f"/api/shipping/{order.id}", headers=headers, json=dict(COURIER, shipping_cost=-1))
    assert negative.status_code == 422
