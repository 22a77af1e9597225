from __future__ import annotations

from copy import deepcopy
from typing import Any

from fastapi import HTTPException

from storefront.core.config import Settings
from storefront.core.security import create_token, decode_token, verify_password
from storefront.store.in_memory import InMemoryStore


class AuthService:
    def __init__(self, store: InMemoryStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def login(self, email: str, password: str) -> dict[str, Any]:
        normalized_email = email.strip().lower()
        with self.store.lock:
            user_id = self.store.user_ids_by_email.get(normalized_email)
            user = self.store.users_by_id.get(user_id) if user_id else None
            if not user or not verify_password(password, user["passwordHash"]):
                raise HTTPException(status_code=401, detail="Invalid credentials")
            user["lastLoginAt"] = self.store.iso_now()
            public = self._public_user(user)

        token = create_token(
            subject=public["id"],
            token_type="access",
            ttl_seconds=self.settings.access_token_ttl_seconds,
            secret=self.settings.token_secret,
            extra_claims={"role": public["role"], "email": public["email"]},
        )
        return {"token": token, "user": public}

    def get_user_from_access_token(self, access_token: str) -> dict[str, Any]:
        try:
            payload = decode_token(
                token=access_token,
                secret=self.settings.token_secret,
                expected_type="access",
            )
        except ValueError as exc:
            raise HTTPException(status_code=401, detail="Invalid access token") from exc

        with self.store.lock:
            user = self.store.users_by_id.get(str(payload.get("sub", "")))
            if not user:
                raise HTTPException(status_code=401, detail="User not found")
            return self._public_user(user)

    def _public_user(self, user: dict[str, Any]) -> dict[str, Any]:
        return {key: deepcopy(user[key]) for key in ("id", "email", "name", "role")}
