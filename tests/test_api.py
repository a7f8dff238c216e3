"""HTTP tests for the checkout API"""

import hashlib
import hmac
import time
import uuid

import jwt
import pytest
from fastapi.testclient import TestClient

from checkout_service.main import app
from checkout_service.routes.checkout import get_checkout_service
from checkout_service.security import auth as auth_module

from .conftest import ADDRESS, ADMIN_KEY, GATEWAY_KEY_SECRET, JWT_SECRET, USER_ID


def auth_headers(user_id=USER_ID):
    token = jwt.encode(
        {"sub": user_id, "aud": "authenticated", "exp": int(time.time()) + 3600},
        JWT_SECRET,
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


def checkout_body(items, payment_method="cod", **extra):
    body = {
        "items": [
            {"product_id": pid, "quantity": qty, "price": 1} for pid, qty in items
        ],
        "shipping_address": ADDRESS,
        "payment_method": payment_method,
    }
    body.update(extra)
    return body


@pytest.fixture
def client(service, settings, monkeypatch):
    monkeypatch.setattr(auth_module, "get_settings", lambda: settings)
    app.dependency_overrides[get_checkout_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_checkout_requires_token(client):
    response = client.post("/api/checkout", json=checkout_body([("p-kurta", 1)]))

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "unauthenticated"


def test_cod_checkout(client):
    response = client.post(
        "/api/checkout",
        json=checkout_body([("p-kurta", 2)]),
        headers=auth_headers(),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["order"]["total"] == 2100.0
    assert data["order"]["payment_status"] == "pending"
    assert data["order"]["payment_meta"] == {"method": "cod"}
    assert data["gateway_order_id"] is None


def test_gateway_checkout_returns_gateway_details(client):
    response = client.post(
        "/api/checkout",
        json=checkout_body([("p-kurta", 1)], payment_method="gateway"),
        headers=auth_headers(),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["gateway_order_id"] == "order_test_1"
    assert data["gateway_key_id"] == "rzp_test_key"


@pytest.mark.parametrize(
    "body, status, code",
    [
        (checkout_body([("p-ring", 9)]), 400, "insufficient_stock"),
        (checkout_body([("p-missing", 1)]), 404, "product_not_found"),
        (checkout_body([("p-kurta", 1)], coupon_code="NOPE"), 400, "coupon_not_found"),
        (checkout_body([("p-ring", 1)], coupon_code="SAVE20"), 400, "coupon_below_minimum"),
        (checkout_body([("p-kurta", 1)], payment_method="wallet"), 400, "wallet_does_not_cover_total"),
    ],
)
def test_checkout_rejections(client, body, status, code):
    response = client.post("/api/checkout", json=body, headers=auth_headers())

    assert response.status_code == status
    assert response.json()["detail"]["code"] == code


def test_gateway_outage_is_502(client, gateway):
    gateway.fail = True

    response = client.post(
        "/api/checkout",
        json=checkout_body([("p-kurta", 1)], payment_method="gateway"),
        headers=auth_headers(),
    )

    assert response.status_code == 502
    assert response.json()["detail"]["code"] == "gateway_error"


@pytest.mark.parametrize(
    "body",
    [
        checkout_body([]),
        checkout_body([("p-kurta", 0)]),
        checkout_body([("p-kurta", 1)], payment_method="upi"),
        checkout_body([("p-kurta", 1)], wallet_amount=-5),
        {**checkout_body([("p-kurta", 1)]), "shipping_address": {**ADDRESS, "city": ""}},
    ],
)
def test_invalid_payloads(client, body):
    response = client.post("/api/checkout", json=body, headers=auth_headers())

    assert response.status_code == 422


def test_idempotency_key_header(client, orders):
    headers = {**auth_headers(), "Idempotency-Key": "retry-1"}
    body = checkout_body([("p-kurta", 1)])

    first = client.post("/api/checkout", json=body, headers=headers)
    second = client.post("/api/checkout", json=body, headers=headers)

    assert first.json()["order"]["id"] == second.json()["order"]["id"]
    assert len(orders.list_orders()) == 1


def test_orders_are_private(client):
    created = client.post(
        "/api/checkout", json=checkout_body([("p-kurta", 1)]), headers=auth_headers()
    ).json()["order"]

    own = client.get(f"/api/checkout/orders/{created['id']}", headers=auth_headers())
    other = client.get(f"/api/checkout/orders/{created['id']}", headers=auth_headers("user-2"))
    listed = client.get("/api/checkout/orders", headers=auth_headers())
    listed_other = client.get("/api/checkout/orders", headers=auth_headers("user-2"))

    assert own.status_code == 200
    assert own.json()["order_number"] == created["order_number"]
    assert other.status_code == 404
    assert [o["id"] for o in listed.json()] == [created["id"]]
    assert listed_other.json() == []


def test_verify_payment(client, products):
    placed = client.post(
        "/api/checkout",
        json=checkout_body([("p-ring", 1)], payment_method="gateway"),
        headers=auth_headers(),
    ).json()
    gateway_order_id = placed["gateway_order_id"]
    signature = hmac.new(
        GATEWAY_KEY_SECRET.encode(), f"{gateway_order_id}|pay_9".encode(), hashlib.sha256
    ).hexdigest()
    body = {
        "order_id": placed["order"]["id"],
        "gateway_order_id": gateway_order_id,
        "gateway_payment_id": "pay_9",
        "gateway_signature": signature,
    }

    response = client.post("/api/checkout/verify-payment", json=body, headers=auth_headers())
    tampered = client.post(
        "/api/checkout/verify-payment",
        json={**body, "gateway_payment_id": "pay_10"},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    assert response.json()["verified"] is True
    assert response.json()["order"]["payment_status"] == "paid"
    assert products.get_product("p-ring").stock == 2
    assert tampered.status_code == 400
    assert tampered.json()["detail"]["code"] == "payment_verification_failed"


# ==================== Cart ====================

def test_cart_lifecycle(client):
    headers = auth_headers(f"cart-{uuid.uuid4().hex}")

    assert client.get("/api/cart", headers=headers).json()["cart"]["items"] == []

    client.post("/api/cart/items", json={"product_id": "prod-001", "quantity": 2}, headers=headers)
    response = client.post(
        "/api/cart/items", json={"product_id": "prod-001", "quantity": 1}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["cart"]["items"] == [
        {"product_id": "prod-001", "variant": {}, "quantity": 3}
    ]

    missing = client.post("/api/cart/items", json={"product_id": "nope"}, headers=headers)
    too_many = client.post(
        "/api/cart/items", json={"product_id": "prod-001", "quantity": 10000}, headers=headers
    )
    assert missing.status_code == 404
    assert too_many.status_code == 400
    assert too_many.json()["detail"]["code"] == "insufficient_stock"

    removed = client.delete("/api/cart/items/prod-001", headers=headers)
    assert removed.json()["cart"]["items"] == []

    client.post("/api/cart/items", json={"product_id": "prod-002"}, headers=headers)
    cleared = client.delete("/api/cart", headers=headers)
    assert cleared.json()["cart"]["items"] == []


# ==================== Reconciliation ====================

def test_reconciliation_requires_admin_key(client):
    assert client.get("/api/reconciliation").status_code == 403
    assert client.get("/api/reconciliation", headers={"X-Admin-Key": "wrong"}).status_code == 403


def test_reconciliation_disabled_without_key(client, settings, monkeypatch):
    disabled = settings.model_copy(update={"admin_api_key": None})
    monkeypatch.setattr(auth_module, "get_settings", lambda: disabled)

    response = client.get("/api/reconciliation", headers={"X-Admin-Key": ADMIN_KEY})

    assert response.status_code == 503


def test_reconciliation_list_and_retry(client, service, gateway, wallets):
    wallets.credit(USER_ID, 800, "topup", "t-1")
    gateway.on_create = lambda: wallets.debit(USER_ID, 800, "order", "elsewhere")
    client.post(
        "/api/checkout",
        json=checkout_body([("p-kurta", 1)], payment_method="gateway", wallet_amount=400),
        headers=auth_headers(),
    )
    admin = {"X-Admin-Key": ADMIN_KEY}

    tasks = client.get("/api/reconciliation", headers=admin).json()
    assert [t["kind"] for t in tasks] == ["wallet_debit"]

    wallets.credit(USER_ID, 500, "topup", "t-2")
    summary = client.post("/api/reconciliation/retry", headers=admin).json()

    assert summary["resolved"] == [tasks[0]["task_id"]]
    assert summary["still_failing"] == []
    assert client.get("/api/reconciliation", headers=admin).json() == []
    assert wallets.get_balance(USER_ID) == 100.0
