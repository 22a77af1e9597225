from __future__ import annotations

import pytest

from storefront.core.config import Settings
from storefront.core.security import create_token, decode_token, hash_password, verify_password

SECRET = "unit-test-signing-secret-0123456789abcdef"


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://api.internal/api")
    monkeypatch.setenv("API_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("LOCAL_STORAGE_BACKEND", " FILE ")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, ,http://b.test")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.api_base_url == "http://api.internal/api"
    assert settings.api_timeout_seconds == 2.5
    assert settings.local_storage_backend == "file"
    assert settings.cors_origin_list == ["http://a.test", "http://b.test"]
    assert settings.log_level == "DEBUG"
    assert settings.cart_storage_key == "cart"


def test_password_hash_roundtrip() -> None:
    stored = hash_password("password123")
    assert verify_password("password123", stored) is True
    assert verify_password("password124", stored) is False
    assert verify_password("password123", "not-a-hash") is False


def test_token_roundtrip_and_rejections() -> None:
    token = create_token(
        subject="user_000001",
        token_type="access",
        ttl_seconds=60,
        secret=SECRET,
        extra_claims={"role": "customer"},
    )
    payload = decode_token(token=token, secret=SECRET, expected_type="access")
    assert payload["sub"] == "user_000001"
    assert payload["role"] == "customer"

    with pytest.raises(ValueError):
        decode_token(token=token, secret=SECRET + "-rotated", expected_type="access")
    with pytest.raises(ValueError):
        decode_token(token=token, secret=SECRET, expected_type="refresh")

    expired = create_token(subject="u", token_type="access", ttl_seconds=-5, secret=SECRET)
    with pytest.raises(ValueError):
        decode_token(token=expired, secret=SECRET, expected_type="access")
