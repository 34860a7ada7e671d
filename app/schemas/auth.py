from __future__ import annotations

from pydantic import EmailStr, Field

from app.schemas.common import CamelModel
from app.schemas.user import UserRead


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    name: str | None = Field(default=None, max_length=120)


class RegisterResponse(CamelModel):
    user: UserRead
    api_key: str


class ProfileUpdateRequest(CamelModel):
    name: str | None = Field(default=None, max_length=120)


class ApiKeyData(CamelModel):
    key: str
