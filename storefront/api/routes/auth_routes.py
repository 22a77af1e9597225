from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from storefront.api.deps import get_container
from storefront.container import Container
from storefront.models.schemas import LoginRequest

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
def login(payload: LoginRequest, container: Container = Depends(get_container)) -> dict[str, Any]:
    data = container.auth_service.login(email=payload.email, password=payload.password)
    return {"success": True, "data": data}
