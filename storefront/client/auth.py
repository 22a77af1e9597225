from __future__ import annotations

import json
import logging
from typing import Any, Callable

from storefront.client.api_client import TOKEN_KEY, USER_KEY, ApiError, StorefrontApiClient
from storefront.client.local_persistence import LocalPersistence

logger = logging.getLogger(__name__)

AuthListener = Callable[[bool], None]


class AuthState:
    """Observable "is the user signed in" flag.

    Listeners are called with the new value, and only when it changes.
    """

    def __init__(self, initial: bool = False) -> None:
        self._value = bool(initial)
        self._listeners: list[AuthListener] = []

    @property
    def value(self) -> bool:
        return self._value

    def set(self, value: bool) -> None:
        value = bool(value)
        if value == self._value:
            return
        self._value = value
        for listener in list(self._listeners):
            listener(value)

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe


class AuthSession:
    def __init__(
        self,
        *,
        api_client: StorefrontApiClient,
        persistence: LocalPersistence,
        auth_state: AuthState,
    ) -> None:
        self.api_client = api_client
        self.persistence = persistence
        self.auth_state = auth_state
        self._remove_handler = api_client.on_unauthorized(self._handle_unauthorized)

    @property
    def user(self) -> dict[str, Any] | None:
        raw = self.persistence.read(USER_KEY)
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except ValueError:
            logger.warning("Stored user profile is not valid JSON; ignoring it")
            return None
        return user if isinstance(user, dict) else None

    async def login(self, email: str, password: str) -> dict[str, Any]:
        payload = await self.api_client.post(
            "/auth/login", json_payload={"email": email, "password": password}
        )
        if not isinstance(payload, dict) or not payload.get("success"):
            raise ApiError("Login failed", payload=payload)
        data = payload.get("data")
        if not isinstance(data, dict) or not data.get("token"):
            raise ApiError("Login failed", payload=payload)

        user = data.get("user") or {}
        self.persistence.write(TOKEN_KEY, str(data["token"]).encode("utf-8"))
        self.persistence.write(USER_KEY, json.dumps(user).encode("utf-8"))
        self.auth_state.set(True)
        logger.info("Signed in as %s", user.get("email", email))
        return user

    def logout(self) -> None:
        self.persistence.delete(TOKEN_KEY)
        self.persistence.delete(USER_KEY)
        self.auth_state.set(False)

    def restore(self) -> bool:
        raw = self.persistence.read(TOKEN_KEY)
        authenticated = bool(raw and raw.strip())
        self.auth_state.set(authenticated)
        return authenticated

    def close(self) -> None:
        self._remove_handler()

    def _handle_unauthorized(self) -> None:
        logger.info("Session token rejected; signing out")
        self.auth_state.set(False)
