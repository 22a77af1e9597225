from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=1)


class AddCartItemRequest(BaseModel):
    productId: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(BaseModel):
    productId: str = Field(min_length=1)
    quantity: int
