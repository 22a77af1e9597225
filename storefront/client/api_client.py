from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from storefront.client.local_persistence import LocalPersistence
from storefront.core.config import Settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


class ApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class StorefrontApiClient:
    """Shared HTTP client for the storefront API.

    Attaches the stored bearer token to every request. A 401 response wipes
    the stored credentials and notifies the registered unauthorized handlers
    before the error is raised to the caller.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        persistence: LocalPersistence,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.persistence = persistence
        self._unauthorized_handlers: list[Callable[[], None]] = []
        self._client = httpx.AsyncClient(
            base_url=settings.api_base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            timeout=settings.api_timeout_seconds,
            transport=transport,
        )

    def on_unauthorized(self, handler: Callable[[], None]) -> Callable[[], None]:
        self._unauthorized_handlers.append(handler)

        def _remove() -> None:
            if handler in self._unauthorized_handlers:
                self._unauthorized_handlers.remove(handler)

        return _remove

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, *, json_payload: dict[str, Any] | None = None) -> Any:
        return await self.request("POST", path, json_payload=json_payload)

    async def put(self, path: str, *, json_payload: dict[str, Any] | None = None) -> Any:
        return await self.request("PUT", path, json_payload=json_payload)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_payload: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method.upper(),
                path,
                params=params,
                json=json_payload,
                headers=self._auth_headers(),
            )
        except httpx.HTTPError as exc:
            raise ApiError(f"Request to {path} failed: {exc}") from exc

        if response.status_code == 401:
            self._handle_unauthorized()

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            raise ApiError(
                _error_message(payload) or f"{method.upper()} {path} returned {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )
        if payload is None:
            raise ApiError(f"{method.upper()} {path} returned a non-JSON body", status_code=response.status_code)
        return payload

    async def aclose(self) -> None:
        await self._client.aclose()

    def _auth_headers(self) -> dict[str, str]:
        raw = self.persistence.read(TOKEN_KEY)
        if not raw:
            return {}
        token = raw.decode("utf-8").strip()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _handle_unauthorized(self) -> None:
        self.persistence.delete(TOKEN_KEY)
        self.persistence.delete(USER_KEY)
        for handler in list(self._unauthorized_handlers):
            handler()


def _error_message(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    message = payload.get("message")
    return str(message) if message else None
