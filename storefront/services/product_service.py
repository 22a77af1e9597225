from __future__ import annotations

from copy import deepcopy
from typing import Any

from fastapi import HTTPException

from storefront.store.in_memory import InMemoryStore


class ProductService:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def list_products(self) -> dict[str, Any]:
        with self.store.lock:
            products = [deepcopy(row) for row in self.store.products_by_id.values()]
        return {"products": products, "total": len(products)}

    def get_product(self, product_id: str) -> dict[str, Any]:
        with self.store.lock:
            product = self.store.products_by_id.get(product_id)
            if not product:
                raise HTTPException(status_code=404, detail="Product not found")
            return deepcopy(product)
