from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    app_name: str = "Storefront Demo API"
    api_prefix: str = "/api"
    api_base_url: str = "http://localhost:3000/api"
    api_timeout_seconds: float = 10.0
    token_secret: str = "replace-with-a-strong-secret-of-32-plus-chars"
    access_token_ttl_seconds: int = 60 * 60
    cors_origins: str = "http://localhost:5173"
    cart_storage_key: str = "cart"
    local_storage_backend: str = "memory"
    local_storage_dir: str = ".storefront"
    redis_url: str = "redis://localhost:6379/0"
    log_level: str = "INFO"

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [value.strip() for value in self.cors_origins.split(",")]
        return [value for value in origins if value]

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            app_name=os.getenv("APP_NAME", cls.app_name),
            api_prefix=os.getenv("API_PREFIX", cls.api_prefix),
            api_base_url=os.getenv("API_BASE_URL", cls.api_base_url),
            api_timeout_seconds=float(
                os.getenv("API_TIMEOUT_SECONDS", str(cls.api_timeout_seconds))
            ),
            token_secret=os.getenv("TOKEN_SECRET", cls.token_secret),
            access_token_ttl_seconds=int(
                os.getenv("ACCESS_TOKEN_TTL_SECONDS", str(cls.access_token_ttl_seconds))
            ),
            cors_origins=os.getenv("CORS_ORIGINS", cls.cors_origins),
            cart_storage_key=os.getenv("CART_STORAGE_KEY", cls.cart_storage_key),
            local_storage_backend=str(
                os.getenv("LOCAL_STORAGE_BACKEND", cls.local_storage_backend)
            )
            .strip()
            .lower()
            or cls.local_storage_backend,
            local_storage_dir=os.getenv("LOCAL_STORAGE_DIR", cls.local_storage_dir),
            redis_url=os.getenv("REDIS_URL", cls.redis_url),
            log_level=str(os.getenv("LOG_LEVEL", cls.log_level)).strip().upper() or cls.log_level,
        )
