from __future__ import annotations

from dataclasses import dataclass

from storefront.core.config import Settings
from storefront.services.auth_service import AuthService
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService
from storefront.services.product_service import ProductService
from storefront.store.in_memory import InMemoryStore


@dataclass
class Container:
    settings: Settings
    store: InMemoryStore
    auth_service: AuthService
    product_service: ProductService
    cart_service: CartService
    order_service: OrderService

    @classmethod
    def build(cls, settings: Settings | None = None) -> "Container":
        settings = settings or Settings.from_env()
        store = InMemoryStore()
        return cls(
            settings=settings,
            store=store,
            auth_service=AuthService(store=store, settings=settings),
            product_service=ProductService(store=store),
            cart_service=CartService(store=store),
            order_service=OrderService(store=store),
        )
