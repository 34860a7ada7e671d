from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from app.models.user import UserRole
from app.schemas.common import CamelModel


class UserSummary(CamelModel):
    id: str
    email: str
    name: str | None = None
    role: UserRole
    active: bool
    created_at: datetime


class UserRead(UserSummary):
    key: str
    avatar_url: str | None = None


class UserUpdate(CamelModel):
    name: str | None = Field(default=None, max_length=120)
    role: UserRole | None = None
    active: bool | None = None

    @field_validator("role", "active", mode="before")
    @classmethod
    def _reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class UserCounts(CamelModel):
    total: int
    active: int
    inactive: int


class UserListData(CamelModel):
    users: list[UserSummary]
    statistics: UserCounts


class RoleBreakdown(CamelModel):
    admin: int
    editor: int
    user: int
    other: int


class UserStatistics(UserCounts):
    recent: int
    by_role: RoleBreakdown


class UserSearchData(CamelModel):
    users: list[UserSummary]
    count: int
    query: str


class UsersByRoleData(CamelModel):
    users: list[UserSummary]
    count: int
    role: UserRole
