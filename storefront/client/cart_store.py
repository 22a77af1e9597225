from __future__ import annotations

import asyncio
import json
import logging
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Protocol

from storefront.client.auth import AuthState
from storefront.client.identity import normalize_product_id
from storefront.client.local_persistence import LocalPersistence

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "cart"


class RemoteCart(Protocol):
    async def fetch_cart(self) -> dict[str, Any]: ...

    async def add_item(self, product_id: str, quantity: int = 1) -> dict[str, Any]: ...

    async def update_item(self, product_id: str, quantity: int) -> dict[str, Any]: ...

    async def remove_item(self, product_id: str) -> dict[str, Any]: ...


@dataclass(frozen=True)
class CartResult:
    success: bool
    error: str | None = None


class CartStore:
    """Cart lines for one client session.

    Every mutation is applied to the in-memory lines and written to local
    persistence before the coroutine first yields. When the session is
    authenticated the matching remote call runs as a background task; its
    outcome is only logged and never rolls back the local change. The only
    path that overwrites local lines is the fetch that follows a transition
    into the authenticated state, and only when that fetch succeeds.
    """

    def __init__(
        self,
        *,
        persistence: LocalPersistence,
        remote: RemoteCart,
        auth_state: AuthState,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        self.persistence = persistence
        self.remote = remote
        self.auth_state = auth_state
        self.storage_key = storage_key
        self._items: list[dict[str, Any]] = []
        self._active_fetches = 0
        self._should_open_cart = False
        self._authenticated = False
        self._unsubscribe: Callable[[], None] | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._reconcile_task: asyncio.Task[bool] | None = None
        self._reconcile_pending = False
        self._auth_generation = 0

    def init(self) -> None:
        if self._unsubscribe is not None:
            return
        self._items = self._load_snapshot()
        self._authenticated = False
        self._unsubscribe = self.auth_state.subscribe(self._on_auth_changed)
        # A session that starts signed in counts as a sign-in.
        if self.auth_state.value:
            self._on_auth_changed(True)

    async def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._reconcile_pending = False
        await self.drain()

    @property
    def items(self) -> list[dict[str, Any]]:
        return deepcopy(self._items)

    @property
    def syncing(self) -> bool:
        return self._active_fetches > 0

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def should_open_cart(self) -> bool:
        return self._should_open_cart

    def acknowledge_open_cart(self) -> None:
        self._should_open_cart = False

    async def add(self, product: Mapping[str, Any], quantity: int = 1) -> CartResult:
        self._start_pending_reconcile()
        try:
            product_id = normalize_product_id(product)
            if product_id is None:
                raise ValueError("Product has no identifier")

            index = self._index_of(product_id)
            items = list(self._items)
            if index is None:
                if quantity > 0:
                    items.append({"product": deepcopy(dict(product)), "quantity": quantity})
            else:
                merged = items[index]["quantity"] + quantity
                if merged > 0:
                    items[index] = {**items[index], "quantity": merged}
                else:
                    del items[index]
            self._commit(items)
        except Exception:
            logger.exception("Failed to add to cart")
            return CartResult(success=False, error="Failed to add item to cart")

        if self._authenticated:
            self._dispatch_remote("add", self.remote.add_item, product_id, quantity)
        self._should_open_cart = True
        return CartResult(success=True)

    async def update_quantity(self, product_id: str, quantity: int) -> CartResult:
        product_id = _normalize_id(product_id)
        if quantity <= 0:
            return await self.remove(product_id)

        self._start_pending_reconcile()
        try:
            index = self._index_of(product_id)
            if index is not None:
                items = list(self._items)
                items[index] = {**items[index], "quantity": quantity}
                self._commit(items)
        except Exception:
            logger.exception("Failed to update cart")
            return CartResult(success=False, error="Failed to update cart")

        if self._authenticated:
            self._dispatch_remote("update", self.remote.update_item, product_id, quantity)
        return CartResult(success=True)

    async def remove(self, product_id: str) -> CartResult:
        product_id = _normalize_id(product_id)
        self._start_pending_reconcile()
        try:
            items = [line for line in self._items if _line_id(line) != product_id]
            if len(items) != len(self._items):
                self._commit(items)
        except Exception:
            logger.exception("Failed to remove from cart")
            return CartResult(success=False, error="Failed to remove item from cart")

        if self._authenticated:
            self._dispatch_remote("remove", self.remote.remove_item, product_id)
        return CartResult(success=True)

    def clear(self) -> None:
        self._items = []
        try:
            self.persistence.delete(self.storage_key)
        except Exception as exc:
            logger.warning("Could not delete persisted cart", exc_info=exc)

    def total(self) -> float:
        return sum(
            float(line["product"].get("price") or 0.0) * line["quantity"] for line in self._items
        )

    def item_count(self) -> int:
        return sum(line["quantity"] for line in self._items)

    def find(self, product_id: str) -> dict[str, Any] | None:
        index = self._index_of(product_id)
        return deepcopy(self._items[index]) if index is not None else None

    async def reconcile(self) -> bool:
        """Replace local lines with the server cart; ``False`` leaves them untouched."""
        self._reconcile_pending = False
        task = self._reconcile_task
        if task is None or task.done():
            task = self._start_reconcile()
        return await task

    async def drain(self) -> None:
        while True:
            pending = [task for task in self._background if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _on_auth_changed(self, authenticated: bool) -> None:
        previous = self._authenticated
        self._authenticated = authenticated
        if authenticated != previous:
            self._auth_generation += 1
        if not authenticated:
            self._reconcile_pending = False
            return
        if previous:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.info("Signed in outside an event loop; cart sync deferred")
            self._reconcile_pending = True
            return
        self._start_reconcile(fresh=True)

    def _start_pending_reconcile(self) -> None:
        if self._reconcile_pending and self._authenticated:
            self._reconcile_pending = False
            self._start_reconcile(fresh=True)

    def _start_reconcile(self, *, fresh: bool = False) -> asyncio.Task[bool]:
        # A new sign-in never joins a fetch started under an earlier session.
        if not fresh and self._reconcile_task is not None and not self._reconcile_task.done():
            return self._reconcile_task
        task = asyncio.get_running_loop().create_task(self._reconcile(self._auth_generation))
        self._track(task)
        self._reconcile_task = task
        return task

    async def _reconcile(self, generation: int) -> bool:
        self._active_fetches += 1
        try:
            try:
                response = await self.remote.fetch_cart()
            except Exception as exc:
                logger.warning("Failed to fetch cart; keeping local cart", exc_info=exc)
                return False
            if not isinstance(response, Mapping) or not response.get("success"):
                logger.warning("Cart fetch was rejected; keeping local cart")
                return False
            if generation != self._auth_generation or not self._authenticated:
                logger.info("Auth state changed while cart fetch was in flight; discarding it")
                return False

            self._commit(_normalize_lines(response.get("items") or []))
            logger.info("Replaced local cart with %d line(s) from server", len(self._items))
            return True
        finally:
            self._active_fetches -= 1

    def _dispatch_remote(
        self, action: str, call: Callable[..., Awaitable[Any]], *args: Any
    ) -> None:
        task = asyncio.get_running_loop().create_task(self._run_remote(action, call, *args))
        self._track(task)

    async def _run_remote(
        self, action: str, call: Callable[..., Awaitable[Any]], *args: Any
    ) -> None:
        try:
            response = await call(*args)
        except Exception as exc:
            logger.warning("Remote cart %s %s failed", action, args, exc_info=exc)
            return
        if isinstance(response, Mapping) and not response.get("success", True):
            logger.warning("Remote cart %s %s was rejected", action, args)

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _commit(self, items: list[dict[str, Any]]) -> None:
        self._items = items
        try:
            self.persistence.write(self.storage_key, json.dumps(items).encode("utf-8"))
        except Exception as exc:
            logger.warning("Could not persist cart locally", exc_info=exc)

    def _index_of(self, product_id: str) -> int | None:
        target = _normalize_id(product_id)
        for index, line in enumerate(self._items):
            if _line_id(line) == target:
                return index
        return None

    def _load_snapshot(self) -> list[dict[str, Any]]:
        try:
            raw = self.persistence.read(self.storage_key)
        except Exception as exc:
            logger.warning("Could not read persisted cart", exc_info=exc)
            return []
        if not raw:
            return []
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Persisted cart is not valid JSON; starting empty")
            return []
        if not isinstance(payload, list):
            logger.warning("Persisted cart is not a list; starting empty")
            return []
        return _normalize_lines(payload)


def _normalize_id(product_id: Any) -> str:
    return str(product_id).strip()


def _line_id(line: Mapping[str, Any]) -> str | None:
    return normalize_product_id(line.get("product"))


def _normalize_lines(raw: list[Any]) -> list[dict[str, Any]]:
    lines: list[dict[str, Any]] = []
    positions: dict[str, int] = {}
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        product = entry.get("product")
        product_id = normalize_product_id(product)
        try:
            quantity = int(entry.get("quantity", 0))
        except (TypeError, ValueError):
            quantity = 0
        if product_id is None or quantity <= 0:
            logger.warning("Dropping malformed cart line: %r", entry)
            continue
        if product_id in positions:
            lines[positions[product_id]]["quantity"] += quantity
            continue
        positions[product_id] = len(lines)
        lines.append({"product": deepcopy(dict(product)), "quantity": quantity})
    return lines
