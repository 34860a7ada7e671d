"""Common helper functions for service layer.

This module provides reusable utilities for:
- UUID handling
- Query pagination
- Enum validation
"""

from __future__ import annotations

import uuid

from app.errors import NotFoundError, ValidationError


def coerce_uuid(value):
    """Convert value to UUID, returning None if value is None."""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def coerce_uuid_or_404(value, detail: str):
    """Convert a path id to UUID, treating malformed ids as missing records."""
    try:
        return coerce_uuid(value)
    except ValueError as exc:
        raise NotFoundError(detail) from exc


def apply_pagination(query, limit: int | None, offset: int | None):
    """Apply pagination to a query; None leaves that bound open."""
    if limit is not None:
        query = query.limit(limit)
    if offset:
        query = query.offset(offset)
    return query


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def validate_enum(value, enum_cls, label: str):
    """Validate and convert a value to an enum member.

    Args:
        value: Value to validate (can be None)
        enum_cls: Enum class to validate against
        label: Human-readable label for error messages

    Returns:
        Enum member or None if value is None

    Raises:
        ValidationError: 400 if value is not a valid enum member
    """
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {label}. Allowed: {allowed}") from exc
