"""Uniform response envelope helpers."""

from __future__ import annotations

import math
from datetime import UTC, datetime
from http import HTTPStatus


def timestamp() -> str:
    now = datetime.now(UTC)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown Status"


def ok(data, message: str = "", status_code: int = 200) -> dict:
    return {
        "status": True,
        "code": status_code,
        "data": data,
        "message": message or reason_phrase(status_code),
        "timestamp": timestamp(),
    }


def error(errors, message: str = "", status_code: int = 500) -> dict:
    return {
        "status": False,
        "code": status_code,
        "errors": errors,
        "message": message or reason_phrase(status_code),
        "timestamp": timestamp(),
    }


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
