from __future__ import annotations

from typing import Any
from urllib.parse import quote

from storefront.client.api_client import ApiError, StorefrontApiClient


class RemoteCartService:
    def __init__(self, api_client: StorefrontApiClient) -> None:
        self.api_client = api_client

    async def fetch_cart(self) -> dict[str, Any]:
        payload = _envelope(await self.api_client.get("/cart"))
        data = payload.get("data") or {}
        items = data.get("items") if isinstance(data, dict) else None
        return {
            "success": bool(payload.get("success")),
            "items": items if isinstance(items, list) else [],
        }

    async def add_item(self, product_id: str, quantity: int = 1) -> dict[str, Any]:
        payload = _envelope(
            await self.api_client.post(
                "/cart", json_payload={"productId": product_id, "quantity": quantity}
            )
        )
        return {"success": bool(payload.get("success"))}

    async def update_item(self, product_id: str, quantity: int) -> dict[str, Any]:
        payload = _envelope(
            await self.api_client.put(
                "/cart", json_payload={"productId": product_id, "quantity": quantity}
            )
        )
        return {"success": bool(payload.get("success"))}

    async def remove_item(self, product_id: str) -> dict[str, Any]:
        payload = _envelope(await self.api_client.delete(f"/cart/{quote(product_id, safe='')}"))
        return {"success": bool(payload.get("success"))}


def _envelope(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ApiError("Cart response is not a JSON object", payload=payload)
    return payload
