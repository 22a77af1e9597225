from __future__ import annotations

from typing import Any, Iterable
from urllib.parse import quote

from storefront.client.api_client import ApiError, StorefrontApiClient

SORT_OPTIONS = ("price_asc", "price_desc", "name")


class ProductsApi:
    def __init__(self, api_client: StorefrontApiClient) -> None:
        self.api_client = api_client

    async def get_all(self) -> list[dict[str, Any]]:
        payload = await self.api_client.get("/products")
        if not isinstance(payload, dict) or not payload.get("success"):
            raise ApiError("Failed to load products", payload=payload)
        data = payload.get("data") or {}
        products = data.get("products") if isinstance(data, dict) else None
        return [row for row in products or [] if isinstance(row, dict)]

    async def get_by_id(self, product_id: str) -> dict[str, Any]:
        payload = await self.api_client.get(f"/products/{quote(product_id, safe='')}")
        if not isinstance(payload, dict) or not payload.get("success"):
            raise ApiError("Failed to load product", payload=payload)
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ApiError("Product response carried no product", payload=payload)
        return data


def category_name(product: dict[str, Any]) -> str | None:
    category = product.get("category")
    if isinstance(category, dict):
        category = category.get("name")
    if category is None:
        return None
    text = str(category).strip()
    return text or None


def categories(products: Iterable[dict[str, Any]]) -> list[str]:
    seen: list[str] = ["all"]
    for product in products:
        name = category_name(product)
        if name and name not in seen:
            seen.append(name)
    return seen


def filter_products(
    products: Iterable[dict[str, Any]],
    *,
    search: str = "",
    category: str = "all",
    min_price: float | None = None,
    max_price: float | None = None,
    sort_by: str = "",
) -> list[dict[str, Any]]:
    """Apply the catalog filters (all must match) and then the sort order.

    An empty ``sort_by`` keeps the API order.
    """
    if sort_by and sort_by not in SORT_OPTIONS:
        raise ValueError(f"Unknown sort option: {sort_by}")
    needle = search.strip().lower()
    selected = category.strip() if category else "all"

    def _matches(product: dict[str, Any]) -> bool:
        if needle:
            name = str(product.get("name") or "").lower()
            description = str(product.get("description") or "").lower()
            if needle not in name and needle not in description:
                return False
        if selected != "all" and category_name(product) != selected:
            return False
        price = float(product.get("price") or 0.0)
        if min_price is not None and price < min_price:
            return False
        if max_price is not None and price > max_price:
            return False
        return True

    result = [product for product in products if _matches(product)]
    if sort_by == "price_asc":
        result.sort(key=lambda row: float(row.get("price") or 0.0))
    elif sort_by == "price_desc":
        result.sort(key=lambda row: float(row.get("price") or 0.0), reverse=True)
    elif sort_by == "name":
        result.sort(key=lambda row: str(row.get("name") or "").casefold())
    return result
