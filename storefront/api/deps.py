from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, Request

from storefront.container import Container


def get_container(request: Request) -> Container:
    return request.app.state.container


def _extract_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Authorization header")
    return parts[1]


def get_current_user(
    request: Request, container: Container = Depends(get_container)
) -> dict[str, Any]:
    token = _extract_bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")
    return container.auth_service.get_user_from_access_token(token)
