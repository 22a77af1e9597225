from __future__ import annotations

import logging

from fastapi.testclient import TestClient

from storefront.container import Container
from storefront.core.config import Settings
from storefront.main import create_app
from storefront.store.in_memory import DEMO_EMAIL, DEMO_PASSWORD


def _client() -> TestClient:
    return TestClient(create_app(Container.build(Settings())))


def _login(client: TestClient) -> dict[str, str]:
    response = client.post("/api/auth/login", json={"email": DEMO_EMAIL, "password": DEMO_PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == DEMO_EMAIL
    assert "passwordHash" not in body["data"]["user"]
    return {"Authorization": f"Bearer {body['data']['token']}"}


def test_health_and_catalog_are_public() -> None:
    client = _client()

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "ok"

    listing = client.get("/api/products")
    assert listing.status_code == 200
    products = listing.json()["data"]["products"]
    assert len(products) == 6
    assert all("id" in product for product in products)

    detail = client.get("/api/products/prod_002")
    assert detail.json()["data"]["name"] == "Nike Air Max 90"

    missing = client.get("/api/products/nope")
    assert missing.status_code == 404
    assert missing.json() == {
        "success": False,
        "error": {"code": "NOT_FOUND", "message": "Product not found", "details": []},
    }


def test_login_rejects_bad_credentials_and_bad_payloads() -> None:
    client = _client()

    wrong = client.post("/api/auth/login", json={"email": DEMO_EMAIL, "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["error"]["code"] == "AUTH_REQUIRED"

    invalid = client.post("/api/auth/login", json={"email": "not-an-email", "password": "x"})
    assert invalid.status_code == 400
    assert invalid.json()["error"]["details"][0]["field"] == "email"


def test_cart_requires_bearer_token() -> None:
    client = _client()
    assert client.get("/api/cart").status_code == 401
    assert client.get("/api/cart", headers={"Authorization": "Token abc"}).status_code == 401
    assert client.get("/api/cart", headers={"Authorization": "Bearer abc"}).status_code == 401


def test_cart_add_update_remove_flow() -> None:
    client = _client()
    headers = _login(client)

    assert client.get("/api/cart", headers=headers).json()["data"]["items"] == []

    client.post("/api/cart", headers=headers, json={"productId": "prod_001", "quantity": 1})
    merged = client.post("/api/cart", headers=headers, json={"productId": "prod_001", "quantity": 2})
    assert merged.status_code == 200
    data = merged.json()["data"]
    assert [(line["product"]["id"], line["quantity"]) for line in data["items"]] == [("prod_001", 3)]
    assert data["itemCount"] == 3
    assert data["total"] == 2999.97

    client.post("/api/cart", headers=headers, json={"productId": "prod_005"})
    updated = client.put("/api/cart", headers=headers, json={"productId": "prod_005", "quantity": 4})
    assert updated.json()["data"]["itemCount"] == 7

    zeroed = client.put("/api/cart", headers=headers, json={"productId": "prod_001", "quantity": 0})
    assert [line["product"]["id"] for line in zeroed.json()["data"]["items"]] == ["prod_005"]

    removed = client.delete("/api/cart/prod_005", headers=headers)
    assert removed.json()["data"]["items"] == []
    again = client.delete("/api/cart/prod_005", headers=headers)
    assert again.status_code == 200


def test_cart_rejects_unknown_products_and_lines() -> None:
    client = _client()
    headers = _login(client)

    unknown = client.post("/api/cart", headers=headers, json={"productId": "ghost", "quantity": 1})
    assert unknown.status_code == 404

    absent = client.put("/api/cart", headers=headers, json={"productId": "prod_003", "quantity": 2})
    assert absent.status_code == 404
    assert absent.json()["error"]["message"] == "Cart item not found"

    zero_add = client.post("/api/cart", headers=headers, json={"productId": "prod_003", "quantity": 0})
    assert zero_add.status_code == 400


def test_orders_are_listed_newest_first() -> None:
    client = _client()
    headers = _login(client)

    response = client.get("/api/orders", headers=headers)
    assert response.status_code == 200
    assert [order["orderNumber"] for order in response.json()["data"]] == [
        "ORD-2025-002",
        "ORD-2025-001",
    ]


def test_create_app_applies_configured_log_level() -> None:
    package_logger = logging.getLogger("storefront")
    previous = package_logger.level
    try:
        create_app(Container.build(Settings(log_level="DEBUG")))
        assert package_logger.level == logging.DEBUG
    finally:
        package_logger.setLevel(previous)
