from fastapi import Depends

from app.db import get_db
from app.models.user import UserRole
from app.services.auth_dependencies import (
    Principal,
    require_api_key,
    require_bearer_auth,
    require_role,
)

require_admin = require_role(UserRole.ADMIN)


def get_current_user(auth: Principal = Depends(require_bearer_auth)) -> Principal:
    """Bearer-authenticated caller as reported by the identity provider."""
    return auth


__all__ = [
    "get_db",
    "get_current_user",
    "require_admin",
    "require_api_key",
    "require_bearer_auth",
    "require_role",
]
