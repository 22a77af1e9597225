from __future__ import annotations

from copy import deepcopy
from typing import Any

from storefront.store.in_memory import InMemoryStore


class OrderService:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def list_orders(self, user_id: str) -> list[dict[str, Any]]:
        with self.store.lock:
            orders = deepcopy(self.store.orders_by_user.get(user_id, []))
        orders.sort(key=lambda row: str(row.get("createdAt", "")), reverse=True)
        return orders
