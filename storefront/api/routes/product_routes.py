from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from storefront.api.deps import get_container
from storefront.container import Container

router = APIRouter(prefix="/products", tags=["products"])


@router.get("")
def list_products(container: Container = Depends(get_container)) -> dict[str, Any]:
    return {"success": True, "data": container.product_service.list_products()}


@router.get("/{product_id}")
def get_product(product_id: str, container: Container = Depends(get_container)) -> dict[str, Any]:
    return {"success": True, "data": container.product_service.get_product(product_id=product_id)}
