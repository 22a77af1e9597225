from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Iterable

from storefront.client.api_client import ApiError, StorefrontApiClient

logger = logging.getLogger(__name__)

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

DEMO_ORDERS: tuple[dict[str, Any], ...] = (
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
    {
        "id": "order-3",
        "orderNumber": "ORD-2025-003",
        "createdAt": "2025-02-10T09:15:00Z",
        "status": "processing",
        "total": 1212.98,
        "items": [
            {"name": "Samsung Galaxy S24 Ultra", "quantity": 1, "price": 1199.99},
            {"name": "The Great Gatsby", "quantity": 1, "price": 12.99},
        ],
    },
)


def demo_orders() -> list[dict[str, Any]]:
    return [deepcopy(order) for order in DEMO_ORDERS]


class OrdersApi:
    def __init__(self, api_client: StorefrontApiClient) -> None:
        self.api_client = api_client

    async def list_orders(self) -> list[dict[str, Any]]:
        """Order history, falling back to the demo orders when the API is unreachable.

        A reachable API that answers ``success: false`` is an error, not a fallback.
        """
        try:
            payload = await self.api_client.get("/orders")
        except ApiError as exc:
            logger.warning("Order history unavailable; showing demo orders", exc_info=exc)
            return demo_orders()
        if not isinstance(payload, dict) or not payload.get("success"):
            raise ApiError("Failed to load orders", payload=payload)
        rows = payload.get("data") or []
        return [row for row in rows if isinstance(row, dict)]


def filter_orders(orders: Iterable[dict[str, Any]], status: str = "all") -> list[dict[str, Any]]:
    if not status or status == "all":
        return list(orders)
    if status not in ORDER_STATUSES:
        raise ValueError(f"Unknown order status: {status}")
    return [order for order in orders if order.get("status") == status]
