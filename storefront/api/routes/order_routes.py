from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from storefront.api.deps import get_container, get_current_user
from storefront.container import Container

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("")
def list_orders(
    user: dict[str, Any] = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    return {"success": True, "data": container.order_service.list_orders(user["id"])}
