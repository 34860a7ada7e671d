from __future__ import annotations

import pytest

from app.errors import ForbiddenError, UnauthorizedError
from app.models.user import UserRole
from app.services.auth_dependencies import (
    Principal,
    _extract_bearer_token,
    require_api_key,
    require_bearer_auth,
    require_role,
)


def test_extract_bearer_token():
    assert _extract_bearer_token("Bearer abc") == "abc"
    assert _extract_bearer_token("bearer  abc ") == "abc"
    assert _extract_bearer_token("Basic abc") is None
    assert _extract_bearer_token("Bearer ") is None
    assert _extract_bearer_token(None) is None


def test_bearer_auth_returns_principal(identity_client):
    token = identity_client.issue_token("u-1", "a@example.com")
    principal = require_bearer_auth(
        authorization=f"Bearer {token}", identity=identity_client
    )
    assert principal == Principal(user_id="u-1", email="a@example.com", scheme="bearer")


def test_bearer_auth_rejects_missing_header(identity_client):
    with pytest.raises(UnauthorizedError) as exc:
        require_bearer_auth(authorization=None, identity=identity_client)
    assert exc.value.detail == "Missing or invalid authorization header"


def test_bearer_auth_rejects_unknown_token(identity_client):
    with pytest.raises(UnauthorizedError) as exc:
        require_bearer_auth(authorization="Bearer nope", identity=identity_client)
    assert exc.value.detail == "Invalid or expired token"


def test_require_role_allows_matching_role(db_session, admin):
    guard = require_role(UserRole.ADMIN)
    principal = guard(
        principal=Principal(user_id=admin.id, email=admin.email, scheme="bearer"),
        db=db_session,
    )
    assert principal.role == UserRole.ADMIN
    assert principal.user.id == admin.id


def test_require_role_forbids_other_roles(db_session, user):
    guard = require_role(UserRole.ADMIN, UserRole.EDITOR)
    with pytest.raises(ForbiddenError) as exc:
        guard(
            principal=Principal(user_id=user.id, email=user.email, scheme="bearer"),
            db=db_session,
        )
    assert exc.value.detail == "Access denied. Required roles: ADMIN, EDITOR"


def test_require_role_treats_inactive_or_missing_as_unauthorized(db_session, make_user):
    inactive_admin = make_user(role=UserRole.ADMIN, active=False)
    guard = require_role(UserRole.ADMIN)
    for user_id in (inactive_admin.id, "not-registered"):
        with pytest.raises(UnauthorizedError):
            guard(
                principal=Principal(user_id=user_id, email="x@example.com", scheme="bearer"),
                db=db_session,
            )


def test_api_key_auth(db_session, user, make_user):
    principal = require_api_key(x_api_key=user.key, db=db_session)
    assert principal.user_id == user.id
    assert principal.scheme == "api_key"
    assert principal.user is user

    with pytest.raises(UnauthorizedError):
        require_api_key(x_api_key=None, db=db_session)
    with pytest.raises(UnauthorizedError):
        require_api_key(x_api_key="unknown", db=db_session)

    inactive = make_user(active=False)
    with pytest.raises(ForbiddenError):
        require_api_key(x_api_key=inactive.key, db=db_session)
