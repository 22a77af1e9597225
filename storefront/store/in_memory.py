from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone
from threading import RLock
from typing import Any

from storefront.core.security import hash_password

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "password123"


class InMemoryStore:
    """Mock data behind the demo API. Nothing here outlives the process."""

    def __init__(self) -> None:
        self.lock = RLock()
        self._counters = {"user": 0}

        self.users_by_id: dict[str, dict[str, Any]] = {}
        self.user_ids_by_email: dict[str, str] = {}
        self.carts_by_user: dict[str, list[dict[str, Any]]] = {}
        self.orders_by_user: dict[str, list[dict[str, Any]]] = {}
        self.products_by_id: dict[str, dict[str, Any]] = self._seed_products()
        self._seed_demo_user()

    def next_id(self, prefix: str) -> str:
        with self.lock:
            self._counters[prefix] += 1
            return f"{prefix}_{self._counters[prefix]:06d}"

    @staticmethod
    def utc_now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def iso_now() -> str:
        return InMemoryStore.utc_now().isoformat()

    def add_user(self, *, email: str, password: str, name: str, role: str = "customer") -> dict[str, Any]:
        normalized = email.strip().lower()
        with self.lock:
            user = {
                "id": self.next_id("user"),
                "email": normalized,
                "name": name,
                "role": role,
                "passwordHash": hash_password(password),
                "createdAt": self.iso_now(),
            }
            self.users_by_id[user["id"]] = user
            self.user_ids_by_email[normalized] = user["id"]
            return deepcopy(user)

    def _seed_products(self) -> dict[str, dict[str, Any]]:
        raw = [
            {
                "id": "prod_001",
                "name": "iPhone 15 Pro",
                "description": "Titanium smartphone with a 48MP main camera.",
                "category": {"name": "Electronics"},
                "price": 999.99,
                "image": "https://cdn.example.com/products/prod_001.jpg",
                "stock": 25,
                "rating": 4.8,
            },
            {
                "id": "prod_002",
                "name": "Nike Air Max 90",
                "description": "Classic running shoe with visible Air cushioning.",
                "category": {"name": "Footwear"},
                "price": 119.99,
                "image": "https://cdn.example.com/products/prod_002.jpg",
                "stock": 60,
                "rating": 4.5,
            },
            {
                "id": "prod_003",
                "name": 'MacBook Pro 16"',
                "description": "Laptop for demanding creative work.",
                "category": {"name": "Electronics"},
                "price": 2499.99,
                "image": "https://cdn.example.com/products/prod_003.jpg",
                "stock": 8,
                "rating": 4.9,
            },
            {
                "id": "prod_004",
                "name": "Samsung Galaxy S24 Ultra",
                "description": "Android flagship with a built-in stylus.",
                "category": {"name": "Electronics"},
                "price": 1199.99,
                "image": "https://cdn.example.com/products/prod_004.jpg",
                "stock": 15,
                "rating": 4.7,
            },
            {
                "id": "prod_005",
                "name": "The Great Gatsby",
                "description": "F. Scott Fitzgerald's novel of the Jazz Age.",
                "category": {"name": "Books"},
                "price": 12.99,
                "image": "https://cdn.example.com/products/prod_005.jpg",
                "stock": 120,
                "rating": 4.4,
            },
            {
                "id": "prod_006",
                "name": "Levi's 501 Jeans",
                "description": "Straight-leg denim in the original fit.",
                "category": {"name": "Clothing"},
                "price": 69.5,
                "image": "https://cdn.example.com/products/prod_006.jpg",
                "stock": 0,
                "rating": 4.3,
            },
        ]
        return {row["id"]: row for row in raw}

    def _seed_demo_user(self) -> None:
        user = self.add_user(email=DEMO_EMAIL, password=DEMO_PASSWORD, name="Demo Shopper")
        self.orders_by_user[user["id"]] = [
            {
                "id": "order-1",
                "orderNumber": "ORD-2025-001",
                "createdAt": "2025-01-15T10:30:00Z",
                "status": "delivered",
                "total": 1119.98,
                "items": [
                    {"name": "iPhone 15 Pro", "quantity": 1, "price": 999.99},
                    {"name": "Nike Air Max 90", "quantity": 1, "price": 119.99},
                ],
            },
            {
                "id": "order-2",
                "orderNumber": "ORD-2025-002",
                "createdAt": "2025-02-01T14:20:00Z",
                "status": "shipped",
                "total": 2499.99,
                "items": [{"name": 'MacBook Pro 16"', "quantity": 1, "price": 2499.99}],
            },
        ]
