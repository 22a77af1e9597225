from __future__ import annotations

from dataclasses import dataclass

import httpx

from storefront.client.api_client import StorefrontApiClient
from storefront.client.auth import AuthSession, AuthState
from storefront.client.cart_store import CartStore
from storefront.client.local_persistence import LocalPersistence, build_local_storage
from storefront.client.orders import OrdersApi
from storefront.client.products import ProductsApi
from storefront.client.remote_cart import RemoteCartService
from storefront.core.config import Settings


@dataclass
class ClientContainer:
    settings: Settings
    persistence: LocalPersistence
    api_client: StorefrontApiClient
    auth_state: AuthState
    auth_session: AuthSession
    products: ProductsApi
    orders: OrdersApi
    cart: CartStore

    @classmethod
    def build(
        cls,
        settings: Settings | None = None,
        *,
        persistence: LocalPersistence | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ClientContainer":
        settings = settings or Settings.from_env()
        persistence = persistence if persistence is not None else build_local_storage(settings)
        api_client = StorefrontApiClient(settings, persistence=persistence, transport=transport)
        auth_state = AuthState()
        auth_session = AuthSession(api_client=api_client, persistence=persistence, auth_state=auth_state)
        cart = CartStore(
            persistence=persistence,
            remote=RemoteCartService(api_client),
            auth_state=auth_state,
            storage_key=settings.cart_storage_key,
        )
        return cls(
            settings=settings,
            persistence=persistence,
            api_client=api_client,
            auth_state=auth_state,
            auth_session=auth_session,
            products=ProductsApi(api_client),
            orders=OrdersApi(api_client),
            cart=cart,
        )

    async def start(self) -> None:
        self.auth_session.restore()
        self.cart.init()

    async def close(self) -> None:
        await self.cart.dispose()
        self.auth_session.close()
        await self.api_client.aclose()
