from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from storefront.client.api_client import TOKEN_KEY, USER_KEY, ApiError, StorefrontApiClient
from storefront.client.auth import AuthSession, AuthState
from storefront.client.local_persistence import MemoryLocalStorage
from storefront.client.remote_cart import RemoteCartService
from storefront.core.config import Settings

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler, persistence: MemoryLocalStorage | None = None) -> StorefrontApiClient:
    return StorefrontApiClient(
        Settings(api_base_url="http://shop.test/api"),
        persistence=persistence if persistence is not None else MemoryLocalStorage(),
        transport=httpx.MockTransport(handler),
    )


def test_auth_state_notifies_only_on_change() -> None:
    state = AuthState()
    seen: list[bool] = []
    unsubscribe = state.subscribe(seen.append)

    state.set(False)
    state.set(True)
    state.set(True)
    state.set(False)
    unsubscribe()
    state.set(True)

    assert seen == [True, False]
    assert state.value is True


@pytest.mark.asyncio
async def test_request_attaches_stored_bearer_token() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"success": True, "data": {"items": []}})

    persistence = MemoryLocalStorage()
    client = _client(handler, persistence)
    await client.get("/cart")
    persistence.write(TOKEN_KEY, b"jwt-token")
    await client.get("/cart")
    await client.aclose()

    assert captured[0].url == httpx.URL("http://shop.test/api/cart")
    assert "authorization" not in captured[0].headers
    assert captured[1].headers["authorization"] == "Bearer jwt-token"


@pytest.mark.asyncio
async def test_unauthorized_response_clears_credentials_and_signs_out() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"success": False, "error": {"message": "Invalid access token"}})

    persistence = MemoryLocalStorage()
    persistence.write(TOKEN_KEY, b"expired")
    persistence.write(USER_KEY, b'{"id": "user_000001"}')
    client = _client(handler, persistence)
    auth_state = AuthState(initial=True)
    AuthSession(api_client=client, persistence=persistence, auth_state=auth_state)

    with pytest.raises(ApiError) as exc_info:
        await client.get("/cart")
    await client.aclose()

    assert exc_info.value.status_code == 401
    assert str(exc_info.value) == "Invalid access token"
    assert persistence.read(TOKEN_KEY) is None
    assert persistence.read(USER_KEY) is None
    assert auth_state.value is False


@pytest.mark.asyncio
async def test_transport_errors_become_api_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    with pytest.raises(ApiError, match="failed"):
        await client.get("/products")
    await client.aclose()


@pytest.mark.asyncio
async def test_login_stores_token_and_user() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/api/auth/login"
        assert body == {"email": "demo@example.com", "password": "secret"}
        user = {"id": "user_000001", "email": "demo@example.com", "name": "Demo", "role": "customer"}
        return httpx.Response(200, json={"success": True, "data": {"token": "jwt", "user": user}})

    persistence = MemoryLocalStorage()
    client = _client(handler, persistence)
    auth_state = AuthState()
    session = AuthSession(api_client=client, persistence=persistence, auth_state=auth_state)

    user = await session.login("demo@example.com", "secret")

    assert user["email"] == "demo@example.com"
    assert persistence.read(TOKEN_KEY) == b"jwt"
    assert session.user == user
    assert auth_state.value is True

    session.logout()
    assert auth_state.value is False
    assert session.user is None
    assert persistence.read(TOKEN_KEY) is None
    await client.aclose()


@pytest.mark.asyncio
async def test_login_without_token_is_rejected() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": {}})

    persistence = MemoryLocalStorage()
    client = _client(handler, persistence)
    auth_state = AuthState()
    session = AuthSession(api_client=client, persistence=persistence, auth_state=auth_state)

    with pytest.raises(ApiError):
        await session.login("demo@example.com", "secret")
    assert auth_state.value is False
    await client.aclose()


def test_restore_reads_stored_token() -> None:
    persistence = MemoryLocalStorage()
    client = _client(lambda _: httpx.Response(200, json={}), persistence)
    auth_state = AuthState()
    session = AuthSession(api_client=client, persistence=persistence, auth_state=auth_state)

    assert session.restore() is False
    persistence.write(TOKEN_KEY, b"jwt")
    assert session.restore() is True
    assert auth_state.value is True


@pytest.mark.asyncio
async def test_remote_cart_service_maps_endpoints() -> None:
    seen: list[tuple[str, str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        seen.append((request.method, request.url.raw_path.decode(), body))
        if request.method == "GET":
            line = {"product": {"id": "p1", "price": 3.0}, "quantity": 2}
            return httpx.Response(200, json={"success": True, "data": {"items": [line]}})
        return httpx.Response(200, json={"success": True, "data": {"items": []}})

    client = _client(handler)
    remote = RemoteCartService(client)

    fetched = await remote.fetch_cart()
    assert fetched == {"success": True, "items": [{"product": {"id": "p1", "price": 3.0}, "quantity": 2}]}
    assert await remote.add_item("p1", 2) == {"success": True}
    assert await remote.update_item("p1", 5) == {"success": True}
    assert await remote.remove_item("a/b") == {"success": True}
    await client.aclose()

    assert seen == [
        ("GET", "/api/cart", None),
        ("POST", "/api/cart", {"productId": "p1", "quantity": 2}),
        ("PUT", "/api/cart", {"productId": "p1", "quantity": 5}),
        ("DELETE", "/api/cart/a%2Fb", None),
    ]


@pytest.mark.asyncio
async def test_remote_cart_service_reports_unsuccessful_envelope() -> None:
    client = _client(lambda _: httpx.Response(200, json={"success": False}))
    remote = RemoteCartService(client)

    assert await remote.fetch_cart() == {"success": False, "items": []}
    assert await remote.add_item("p1") == {"success": False}
    await client.aclose()
