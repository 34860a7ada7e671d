from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.db import get_db as _get_db
from app.errors import ForbiddenError, UnauthorizedError
from app.models.user import User, UserRole
from app.services.identity import IdentityError, get_identity_client
from app.services.users import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, whichever scheme admitted it."""

    user_id: str
    email: str
    scheme: str
    role: UserRole | None = None
    user: User | None = None


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip() or None
    return None


def require_bearer_auth(
    authorization: str | None = Header(default=None),
    identity=Depends(get_identity_client),
) -> Principal:
    token = _extract_bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Missing or invalid authorization header", "Unauthorized")
    try:
        identity_user = identity.get_user(token)
    except IdentityError as exc:
        logger.info("bearer_rejected status=%s error=%s", exc.status_code, exc.message)
        raise UnauthorizedError("Invalid or expired token", "Unauthorized") from exc
    return Principal(
        user_id=identity_user.id, email=identity_user.email, scheme="bearer"
    )


def require_role(*roles: UserRole):
    allowed = set(roles)

    def _require_role(
        principal: Principal = Depends(require_bearer_auth),
        db: Session = Depends(_get_db),
    ) -> Principal:
        user = UserRepository.find_by_id(db, principal.user_id)
        if user is None or not user.active:
            raise UnauthorizedError("User not found or inactive", "Unauthorized")
        if user.role not in allowed:
            required = ", ".join(sorted(role.value for role in allowed))
            raise ForbiddenError(f"Access denied. Required roles: {required}", "Forbidden")
        return Principal(
            user_id=user.id,
            email=user.email,
            scheme=principal.scheme,
            role=user.role,
            user=user,
        )

    return _require_role


def require_api_key(
    x_api_key: str | None = Header(default=None),
    db: Session = Depends(_get_db),
) -> Principal:
    if not x_api_key:
        raise UnauthorizedError("Missing X-API-Key header", "API key required")
    user = UserRepository.by_api_key(db, x_api_key)
    if user is None:
        raise UnauthorizedError("Invalid API key", "API key not found")
    if not user.active:
        raise ForbiddenError(
            "Account is inactive",
            "Your account has been deactivated. Please contact administrator.",
        )
    return Principal(
        user_id=user.id, email=user.email, scheme="api_key", role=user.role, user=user
    )
