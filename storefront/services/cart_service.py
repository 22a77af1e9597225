from __future__ import annotations

from copy import deepcopy
from typing import Any

from fastapi import HTTPException

from storefront.store.in_memory import InMemoryStore


class CartService:
    """Per-user server cart. Lines are keyed by product id."""

    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def get_cart(self, user_id: str) -> dict[str, Any]:
        with self.store.lock:
            return self._view(self.store.carts_by_user.get(user_id, []))

    def add_item(self, user_id: str, product_id: str, quantity: int) -> dict[str, Any]:
        product = self._resolve_product(product_id)
        with self.store.lock:
            lines = self.store.carts_by_user.setdefault(user_id, [])
            existing = next((line for line in lines if line["product"]["id"] == product_id), None)
            if existing:
                existing["quantity"] += quantity
            else:
                lines.append({"product": self._snapshot(product), "quantity": quantity})
            return self._view(lines)

    def update_item(self, user_id: str, product_id: str, quantity: int) -> dict[str, Any]:
        if quantity <= 0:
            return self.remove_item(user_id, product_id)
        with self.store.lock:
            lines = self.store.carts_by_user.get(user_id, [])
            target = next((line for line in lines if line["product"]["id"] == product_id), None)
            if not target:
                raise HTTPException(status_code=404, detail="Cart item not found")
            target["quantity"] = quantity
            return self._view(lines)

    def remove_item(self, user_id: str, product_id: str) -> dict[str, Any]:
        with self.store.lock:
            lines = [
                line
                for line in self.store.carts_by_user.get(user_id, [])
                if line["product"]["id"] != product_id
            ]
            self.store.carts_by_user[user_id] = lines
            return self._view(lines)

    def _resolve_product(self, product_id: str) -> dict[str, Any]:
        with self.store.lock:
            product = self.store.products_by_id.get(product_id)
            if not product:
                raise HTTPException(status_code=404, detail="Product not found")
            return deepcopy(product)

    def _snapshot(self, product: dict[str, Any]) -> dict[str, Any]:
        keys = ("id", "name", "price", "image", "stock")
        return {key: product.get(key) for key in keys}

    def _view(self, lines: list[dict[str, Any]]) -> dict[str, Any]:
        items = deepcopy(lines)
        return {
            "items": items,
            "itemCount": sum(line["quantity"] for line in items),
            "total": round(sum(line["product"]["price"] * line["quantity"] for line in items), 2),
        }
