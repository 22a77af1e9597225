from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from storefront.api.deps import get_container, get_current_user
from storefront.container import Container
from storefront.models.schemas import AddCartItemRequest, UpdateCartItemRequest

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("")
def get_cart(
    user: dict[str, Any] = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    return {"success": True, "data": container.cart_service.get_cart(user["id"])}


@router.post("")
def add_item(
    payload: AddCartItemRequest,
    user: dict[str, Any] = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    cart = container.cart_service.add_item(user["id"], payload.productId, payload.quantity)
    return {"success": True, "data": cart}


@router.put("")
def update_item(
    payload: UpdateCartItemRequest,
    user: dict[str, Any] = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    cart = container.cart_service.update_item(user["id"], payload.productId, payload.quantity)
    return {"success": True, "data": cart}


@router.delete("/{product_id}")
def remove_item(
    product_id: str,
    user: dict[str, Any] = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    return {"success": True, "data": container.cart_service.remove_item(user["id"], product_id)}
