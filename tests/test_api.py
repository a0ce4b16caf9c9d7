from datetime import timedelta

import pytest
from rest_framework.test import APIClient

from groupbuying.services import get_services
from orders.models import OrderStatus, utcnow

pytestmark = pytest.mark.django_db

ORDERS = "/api/v1/group-orders/"


@pytest.fixture
def api():
    return APIClient()


def order_payload(**overrides):
    payload = {
        "supplier_id": "supplier_1",
        "supplier_name": "Sharma Wholesale",
        "item": "Onions",
        "description": "Nashik red onions, 50kg sacks",
        "bulk_price": "22.00",
        "original_price": "28.00",
        "min_quantity": 100,
        "max_quantity": 500,
        "deadline": (utcnow().date() + timedelta(days=7)).isoformat(),
        "location": "Crawford Market, Mumbai [18.9477,72.8342]",
        "delivery_charge_per_km": "10.00",
        "contact_phone": "9876543210",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def order_id(api):
    response = api.post(ORDERS, order_payload(), format="json")
    assert response.status_code == 201, response.data
    return response.data["id"]


def join(api, order_id, vendor_id, quantity, **extra):
    body = {"vendor_id": vendor_id, "vendor_name": vendor_id.replace("_", " ").title(), "quantity": quantity}
    body.update(extra)
    return api.post(f"{ORDERS}{order_id}/join/", body, format="json")


def test_create_parses_legacy_location(api, order_id):
    response = api.get(f"{ORDERS}{order_id}/")

    assert response.status_code == 200
    assert response.data["status"] == "open"
    assert response.data["location"] == {"address": "Crawford Market, Mumbai", "lat": 18.9477, "lng": 72.8342}
    assert response.data["bulk_price"] == "22.00"
    assert response.data["remaining_quantity"] == 500


def test_create_rejects_bad_prices(api):
    response = api.post(ORDERS, order_payload(bulk_price="30.00"), format="json")

    assert response.status_code == 400
    assert response.data["rule"] == "bulk_price_below_original"


def test_unknown_order_is_404(api):
    response = api.get(f"{ORDERS}does-not-exist/")
    assert response.status_code == 404
    assert "error" in response.data


def test_join_accept_and_reopen(api, order_id):
    first = join(api, order_id, "vendor_a", 60, lat=18.9577, lng=72.8342, vendor_phone="9123456780")
    assert first.status_code == 201
    assert first.data["participants"][0]["delivery_charge"] is not None

    second = join(api, order_id, "vendor_b", 45)
    assert second.data["status"] == "accepted"
    assert second.data["total_quantity"] == 105

    bumped = api.post(f"{ORDERS}{order_id}/quantity/", {"vendor_id": "vendor_a", "quantity": 200}, format="json")
    assert bumped.status_code == 200
    assert bumped.data["status"] == "open"
    assert bumped.data["total_quantity"] == 245


def test_capacity_and_duplicate_are_conflicts(api, order_id):
    join(api, order_id, "vendor_a", 100)
    api.post(f"{ORDERS}{order_id}/quantity/", {"vendor_id": "vendor_a", "quantity": 480}, format="json")

    over = join(api, order_id, "vendor_c", 30)
    assert over.status_code == 409
    assert over.data["remaining"] == 20

    again = join(api, order_id, "vendor_a", 5)
    assert again.status_code == 409
    assert "participant_id" in again.data


def test_join_rejects_half_a_coordinate(api, order_id):
    response = join(api, order_id, "vendor_a", 10, lat=18.95)
    assert response.status_code == 400


def test_leave_and_vendor_listing(api, order_id):
    join(api, order_id, "vendor_a", 10)
    assert [o["id"] for o in api.get(ORDERS, {"vendor_id": "vendor_a"}).data] == [order_id]

    left = api.post(f"{ORDERS}{order_id}/leave/", {"vendor_id": "vendor_a"}, format="json")
    assert left.status_code == 200
    assert left.data["participants"] == []
    assert api.get(ORDERS, {"vendor_id": "vendor_a"}).data == []


def test_edit_reprices_participants(api, order_id):
    join(api, order_id, "vendor_a", 10, lat=18.9577, lng=72.8342)

    response = api.patch(f"{ORDERS}{order_id}/", {"delivery_charge_per_km": "20.00"}, format="json")

    assert response.status_code == 200
    assert response.data["recalculated_participants"] == 1
    assert response.data["order"]["delivery_charge_per_km"] == "20.00"
    assert response.data["order"]["location"]["lat"] == 18.9477


def test_edit_cannot_drop_max_below_committed(api, order_id):
    join(api, order_id, "vendor_a", 60)
    response = api.patch(f"{ORDERS}{order_id}/", {"max_quantity": 50, "min_quantity": 10}, format="json")

    assert response.status_code == 400
    assert response.data["rule"] == "max_below_committed"


def test_full_lifecycle_with_receipt(api, order_id):
    join(api, order_id, "vendor_a", 40)
    assert api.post(f"{ORDERS}{order_id}/complete/").status_code == 400

    assert api.post(f"{ORDERS}{order_id}/process-early/").data["status"] == "accepted"
    assert api.post(f"{ORDERS}{order_id}/complete/").data["status"] == "completed"

    reviewed = api.post(f"{ORDERS}{order_id}/review/", {"vendor_id": "vendor_a"}, format="json")
    assert reviewed.data["participants"][0]["has_reviewed"] is True

    receipt = api.get(f"{ORDERS}{order_id}/receipt/")
    assert receipt.data["revenue"] == "880.00"
    assert receipt.data["total_savings"] == "240.00"
    assert receipt.data["participant_count"] == 1

    assert api.delete(f"{ORDERS}{order_id}/").status_code == 204
    assert api.get(f"{ORDERS}{order_id}/").status_code == 404


def test_delete_requires_terminal_status(api, order_id):
    assert api.delete(f"{ORDERS}{order_id}/").status_code == 400

    cancelled = api.post(f"{ORDERS}{order_id}/cancel/")
    assert cancelled.data["status"] == "cancelled"
    assert api.delete(f"{ORDERS}{order_id}/").status_code == 204


def test_housekeeping_expires_and_resets(api, order_id):
    store = get_services().store
    stale = api.post(ORDERS, order_payload(item="Tomatoes"), format="json").data["id"]
    store.update_order(stale, deadline=utcnow().date() - timedelta(days=1))
    store.update_order(order_id, status=OrderStatus.ACCEPTED)

    response = api.post("/api/v1/housekeeping/")

    assert response.status_code == 200
    assert response.data["reset_order_ids"] == [order_id]
    assert response.data["expired_order_ids"] == [stale]


def test_register_and_login_with_roles(api):
    registered = api.post(
        "/api/v1/auth/register/",
        {"email": "Supplier@Example.com", "password": "secret12", "role": "supplier", "name": "Sharma Wholesale"},
        format="json",
    )
    assert registered.status_code == 201
    assert registered.data["email"] == "supplier@example.com"

    ok = api.post(
        "/api/v1/auth/login/",
        {"email": "supplier@example.com", "password": "secret12", "role": "supplier"},
        format="json",
    )
    assert ok.status_code == 200
    assert ok.data["role"] == "supplier"

    wrong_role = api.post(
        "/api/v1/auth/login/",
        {"email": "supplier@example.com", "password": "secret12", "role": "vendor"},
        format="json",
    )
    assert wrong_role.status_code == 403

    wrong_password = api.post(
        "/api/v1/auth/login/",
        {"email": "supplier@example.com", "password": "not-it", "role": "supplier"},
        format="json",
    )
    assert wrong_password.status_code == 401

    profile = api.get(f"/api/v1/auth/{ok.data['id']}/")
    assert profile.data["name"] == "Sharma Wholesale"
