"""
Orders API: authentication, policy decisions and idempotent placement.
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from app.models.order import Order
from app.models.user import UserRole


def order_body(restaurant_id: str, item_id: str, quantity: int = 2) -> dict:
    return {
        "restaurantId": restaurant_id,
        "items": [{"menuItemId": item_id, "quantity": quantity}],
        "deliveryAddress": {"street": "12 MG Road", "city": "Bengaluru"},
        "paymentMethod": "UPI",
    }


@pytest_asyncio.fixture
async def placed(client, make_user, auth_headers, restaurant, make_menu_item):
    """An order placed through the API by a fresh customer."""
    customer = await make_user(UserRole.USER)
    item = await make_menu_item(price=Decimal("100"))
    r = await client.post(
        "/api/orders", json=order_body(restaurant.id, item.id), headers=auth_headers(customer)
    )
    assert r.status_code == 201, r.text
    return customer, r.json()


# ─── Authentication ────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_create_order_requires_token(client, restaurant):
    r = await client.post("/api/orders", json=order_body(restaurant.id, "m1"))
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_tampered_token_rejected(client, restaurant):
    r = await client.post(
        "/api/orders",
        json=order_body(restaurant.id, "m1"),
        headers={"Authorization": "Bearer not.a.jwt"},
    )
    assert r.status_code == 401


# ─── Create ────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_create_order_returns_priced_order(placed):
    customer, order = placed
    assert order["userId"] == customer.id
    assert order["status"] == "Pending"
    assert Decimal(order["subtotal"]) == Decimal("200")
    assert Decimal(order["tax"]) == Decimal("36")
    assert Decimal(order["total"]) == Decimal("286")
    assert order["orderNumber"].startswith("GP")
    assert order["items"][0]["menuItemName"] == "Paneer Tikka"
    assert order["deliveryAddress"]["city"] == "Bengaluru"
    assert len(order["statusHistory"]) == 1

    eta = datetime.fromisoformat(order["estimatedDeliveryTime"].replace("Z", "+00:00"))
    created = datetime.fromisoformat(order["createdAt"].replace("Z", "+00:00"))
    assert eta - created == timedelta(minutes=30)


@pytest.mark.asyncio
async def test_create_order_with_unavailable_item(client, make_user, auth_headers, restaurant, make_menu_item):
    customer = await make_user()
    item = await make_menu_item(is_available=False)

    r = await client.post(
        "/api/orders", json=order_body(restaurant.id, item.id), headers=auth_headers(customer)
    )

    assert r.status_code == 400
    assert r.json()["detail"] == f"Menu item {item.id} is not available"


@pytest.mark.asyncio
async def test_create_order_validates_body(client, make_user, auth_headers, restaurant):
    customer = await make_user()
    body = order_body(restaurant.id, "m1", quantity=0)
    r = await client.post("/api/orders", json=body, headers=auth_headers(customer))
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_idempotency_key_replays_first_response(client, db, make_user, auth_headers, restaurant, make_menu_item):
    customer = await make_user()
    item = await make_menu_item()
    headers = {**auth_headers(customer), "Idempotency-Key": "checkout-42"}

    first = await client.post("/api/orders", json=order_body(restaurant.id, item.id), headers=headers)
    second = await client.post("/api/orders", json=order_body(restaurant.id, item.id), headers=headers)

    assert first.status_code == second.status_code == 201
    assert second.headers.get("X-Idempotency-Replay") == "true"
    assert second.json()["id"] == first.json()["id"]
    count = (await db.execute(select(func.count()).select_from(Order))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_idempotency_keys_are_per_user(client, db, make_user, auth_headers, restaurant, make_menu_item):
    item = await make_menu_item()
    for _ in range(2):
        customer = await make_user()
        headers = {**auth_headers(customer), "Idempotency-Key": "same-key"}
        r = await client.post("/api/orders", json=order_body(restaurant.id, item.id), headers=headers)
        assert r.status_code == 201
        assert "X-Idempotency-Replay" not in r.headers

    count = (await db.execute(select(func.count()).select_from(Order))).scalar_one()
    assert count == 2


# ─── Read ──────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_owner_can_read_order(client, placed, auth_headers):
    customer, order = placed
    r = await client.get(f"/api/orders/{order['id']}", headers=auth_headers(customer))
    assert r.status_code == 200
    assert r.json()["id"] == order["id"]


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.VENDOR])
async def test_staff_can_read_any_order(client, placed, make_user, auth_headers, role):
    _, order = placed
    staff = await make_user(role)
    r = await client.get(f"/api/orders/{order['id']}", headers=auth_headers(staff))
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_other_customer_cannot_read_order(client, placed, make_user, auth_headers):
    _, order = placed
    stranger = await make_user(UserRole.USER)
    r = await client.get(f"/api/orders/{order['id']}", headers=auth_headers(stranger))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_missing_order_is_404(client, make_user, auth_headers):
    admin = await make_user(UserRole.ADMIN)
    r = await client.get("/api/orders/does-not-exist", headers=auth_headers(admin))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_list_by_user_is_admin_only(client, placed, make_user, auth_headers):
    customer, order = placed
    r = await client.get(f"/api/orders/user/{customer.id}", headers=auth_headers(customer))
    assert r.status_code == 403

    admin = await make_user(UserRole.ADMIN)
    r = await client.get(f"/api/orders/user/{customer.id}", headers=auth_headers(admin))
    assert r.status_code == 200
    assert [o["id"] for o in r.json()] == [order["id"]]


@pytest.mark.asyncio
async def test_list_by_restaurant_for_vendor(client, placed, make_user, auth_headers, restaurant):
    customer, _ = placed
    r = await client.get(f"/api/orders/restaurant/{restaurant.id}", headers=auth_headers(customer))
    assert r.status_code == 403

    vendor = await make_user(UserRole.VENDOR)
    r = await client.get(f"/api/orders/restaurant/{restaurant.id}", headers=auth_headers(vendor))
    assert r.status_code == 200
    assert len(r.json()) == 1


# ─── Status / cancel ───────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_vendor_updates_status(client, placed, make_user, auth_headers):
    _, order = placed
    vendor = await make_user(UserRole.VENDOR)

    r = await client.put(
        f"/api/orders/{order['id']}/status",
        json={"status": "Preparing", "notes": "In the kitchen"},
        headers=auth_headers(vendor),
    )

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "Preparing"
    assert body["statusHistory"][-1]["notes"] == "In the kitchen"
    assert body["statusHistory"][-1]["updatedBy"] == vendor.id


@pytest.mark.asyncio
async def test_customer_cannot_update_status(client, placed, auth_headers):
    customer, order = placed
    r = await client.put(
        f"/api/orders/{order['id']}/status",
        json={"status": "Delivered"},
        headers=auth_headers(customer),
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_invalid_transition_is_400(client, placed, make_user, auth_headers):
    _, order = placed
    courier = await make_user(UserRole.DELIVERY)
    r = await client.put(
        f"/api/orders/{order['id']}/status",
        json={"status": "Delivered"},
        headers=auth_headers(courier),
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_status_update_on_missing_order(client, make_user, auth_headers):
    admin = await make_user(UserRole.ADMIN)
    r = await client.put(
        "/api/orders/missing/status", json={"status": "Preparing"}, headers=auth_headers(admin)
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_cancel_then_cancel_again(client, placed, auth_headers):
    customer, order = placed

    r = await client.post(f"/api/orders/{order['id']}/cancel", headers=auth_headers(customer))
    assert r.status_code == 200

    r = await client.post(f"/api/orders/{order['id']}/cancel", headers=auth_headers(customer))
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_only_owner_can_cancel(client, placed, make_user, auth_headers):
    _, order = placed
    admin = await make_user(UserRole.ADMIN)
    r = await client.post(f"/api/orders/{order['id']}/cancel", headers=auth_headers(admin))
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_event_stream_requires_tracking_rights(client, placed, make_user, auth_headers):
    _, order = placed
    stranger = await make_user(UserRole.USER)
    r = await client.get(f"/api/orders/{order['id']}/events", headers=auth_headers(stranger))
    assert r.status_code == 403
