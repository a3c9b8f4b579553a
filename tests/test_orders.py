import random
from datetime import datetime, timezone

import pytest

from quickserve.services import orders as order_service
from quickserve.services.orders import (
    ORDER_NUMBER_PATTERN,
    OrderNumberExhausted,
    draw_unique_order_number,
    generate_order_number,
)
from tests.helpers import order_payload


# =============================================================================
# Order numbers
# =============================================================================

def test_generate_order_number_format():
    number = generate_order_number(
        now=datetime(2026, 3, 9, tzinfo=timezone.utc),
        rng=random.Random(7),
    )

    assert ORDER_NUMBER_PATTERN.match(number)
    assert number.startswith("ORD-202603-")


def test_generate_order_number_pads_small_draws():
    class FixedRng:
        def randrange(self, stop):
            return 42

    assert generate_order_number(now=datetime(2026, 12, 1), rng=FixedRng()) == "ORD-202612-0042"


class ScriptedRng:
    """Returns the queued values in order."""

    def __init__(self, *values):
        self.values = list(values)

    def randrange(self, stop):
        return self.values.pop(0)


def test_draw_skips_numbers_already_taken(client, alice, run_db):
    headers, _ = alice
    existing = client.post("/api/orders", headers=headers, json=order_payload()).json()["orderNumber"]
    taken_suffix = int(existing.rsplit("-", 1)[1])
    free_suffix = (taken_suffix + 1) % 10000

    number = run_db(lambda session: draw_unique_order_number(session, rng=ScriptedRng(taken_suffix, free_suffix)))

    assert number != existing
    assert number.endswith(f"-{free_suffix:04d}")


def test_draw_gives_up_when_every_number_is_taken(client, alice, run_db, monkeypatch):
    headers, _ = alice
    existing = client.post("/api/orders", headers=headers, json=order_payload()).json()["orderNumber"]
    taken_suffix = int(existing.rsplit("-", 1)[1])
    monkeypatch.setattr(order_service, "MAX_NUMBER_DRAWS", 3)

    with pytest.raises(OrderNumberExhausted):
        run_db(lambda session: draw_unique_order_number(session, rng=ScriptedRng(*[taken_suffix] * 3)))


# =============================================================================
# Placing orders
# =============================================================================

def test_place_order_stores_submitted_totals(client, alice):
    headers, user = alice

    response = client.post("/api/orders", headers=headers, json=order_payload())

    assert response.status_code == 201
    order = response.json()
    assert order["subtotal"] == 200
    assert order["tax"] == 16
    assert order["total"] == 216
    assert order["status"] == "Pending"
    assert order["paymentMethod"] == "credit-card"
    assert order["user"] == user["id"]
    assert [item["name"] for item in order["items"]] == ["Grilled Salmon", "Tiramisu"]
    assert order["items"][0]["quantity"] == 2


def test_order_number_uses_current_month(client, alice):
    headers, _ = alice

    order = client.post("/api/orders", headers=headers, json=order_payload()).json()

    now = datetime.now(timezone.utc)
    assert ORDER_NUMBER_PATTERN.match(order["orderNumber"])
    assert order["orderNumber"].startswith(f"ORD-{now.year}{now.month:02d}-")


def test_order_numbers_are_unique(client, alice):
    headers, _ = alice

    numbers = {
        client.post("/api/orders", headers=headers, json=order_payload()).json()["orderNumber"]
        for _ in range(25)
    }

    assert len(numbers) == 25


def test_totals_are_not_recomputed(client, alice):
    headers, _ = alice

    response = client.post(
        "/api/orders",
        headers=headers,
        json=order_payload(subtotal=1.0, tax=0.0, total=1.0),
    )

    assert response.status_code == 201
    assert response.json()["total"] == 1.0


def test_cash_payment_is_accepted(client, alice):
    headers, _ = alice

    response = client.post("/api/orders", headers=headers, json=order_payload(paymentMethod="cash"))

    assert response.status_code == 201
    assert response.json()["paymentMethod"] == "cash"


def test_order_requires_authentication(client):
    response = client.post("/api/orders", json=order_payload())

    assert response.status_code == 401
    assert response.json()["message"] == "Authorization token required"


@pytest.mark.parametrize("overrides,field", [
    ({"items": []}, "items"),
    ({"paymentMethod": "bitcoin"}, "paymentMethod"),
    ({"total": -1}, "total"),
    ({"items": [{"name": "Tiramisu", "price": 100.0, "quantity": 0}]}, "items.0.quantity"),
])
def test_invalid_orders_are_rejected(client, alice, overrides, field):
    headers, _ = alice

    response = client.post("/api/orders", headers=headers, json=order_payload(**overrides))

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert field in body["errors"]


def test_rejected_order_is_not_stored(client, alice):
    headers, _ = alice

    client.post("/api/orders", headers=headers, json=order_payload(items=[]))

    assert client.get("/api/orders", headers=headers).json() == []


def test_order_confirmation_is_sent(client, alice, notifications):
    headers, _ = alice

    order = client.post("/api/orders", headers=headers, json=order_payload()).json()

    emails = [m for m in notifications.sent if m["channel"] == "email"]
    assert len(emails) == 1
    assert emails[0]["to"] == "a@x.com"
    assert order["orderNumber"] in emails[0]["subject"]
    # No phone on file, so no SMS
    assert not [m for m in notifications.sent if m["channel"] == "sms"]


def test_order_confirmation_includes_sms_when_phone_on_file(client, alice, notifications):
    headers, _ = alice
    client.put("/api/users/me", headers=headers, json={"name": "Alice", "email": "a@x.com", "phone": "555-0100"})

    client.post("/api/orders", headers=headers, json=order_payload())

    sms = [m for m in notifications.sent if m["channel"] == "sms"]
    assert len(sms) == 1
    assert sms[0]["to"] == "555-0100"


# =============================================================================
# Reading orders
# =============================================================================

def test_list_orders_newest_first(client, alice):
    headers, _ = alice
    placed = [
        client.post("/api/orders", headers=headers, json=order_payload()).json()["id"]
        for _ in range(3)
    ]

    response = client.get("/api/orders", headers=headers)

    assert response.status_code == 200
    assert [order["id"] for order in response.json()] == list(reversed(placed))


def test_list_orders_only_shows_own_orders(client, alice, register_user):
    headers, _ = alice
    bob_headers, _ = register_user(name="Bob", email="bob@example.com")
    client.post("/api/orders", headers=bob_headers, json=order_payload())

    assert client.get("/api/orders", headers=headers).json() == []
    assert len(client.get("/api/orders", headers=bob_headers).json()) == 1


def test_get_own_order(client, alice):
    headers, _ = alice
    order = client.post("/api/orders", headers=headers, json=order_payload()).json()

    response = client.get(f"/api/orders/{order['id']}", headers=headers)

    assert response.status_code == 200
    assert response.json() == order


def test_other_users_order_is_not_found(client, alice, register_user):
    headers, _ = alice
    order = client.post("/api/orders", headers=headers, json=order_payload()).json()
    bob_headers, _ = register_user(name="Bob", email="bob@example.com")

    response = client.get(f"/api/orders/{order['id']}", headers=bob_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Order not found"


def test_unknown_order_is_not_found(client, alice):
    headers, _ = alice

    response = client.get("/api/orders/missing", headers=headers)

    assert response.status_code == 404
