"""
Shared helpers used across blueprints.

Kept free of blueprint imports to avoid circular dependencies.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from flask import request
from flask_login import current_user

from errors import ValidationError


def current_user_id() -> str:
    """Return the authenticated caller's id (routes are behind login_required)."""
    return current_user.id


def utc_now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def json_body() -> dict[str, Any]:
    """Parse the request body as a JSON object."""
    data = request.get_json(force=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def require_fields(data: dict[str, Any], *fields: str, message: str | None = None) -> None:
    """Raise ValidationError unless every field is present and non-empty."""
    missing = [f for f in fields if data.get(f) in (None, "")]
    if missing:
        raise ValidationError(message or f"Missing required field(s): {', '.join(missing)}")


def positive_int(value: Any, field_name: str, default: int) -> int:
    """Coerce a capacity-style field to a positive int, using ``default`` when absent."""
    if value in (None, ""):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")
    if number < 1:
        raise ValidationError(f"{field_name} must be at least 1")
    return number
