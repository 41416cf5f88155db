from __future__ import annotations

from datetime import datetime
from typing import Any

from boutique.time_utils import parse_iso_datetime


# Largest amount accepted anywhere in the document (FCFA, no subunit).
MAX_AMOUNT = 999_999_999_999


class ValidationError(ValueError):
    """400-level input problem or rejected business operation."""


class ConflictError(ValidationError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


def as_int(value: Any, field: str = "value") -> int:
    """
    Coerce a loosely typed number the way the saved documents expect.

    None and "" count as 0. Floats and numeric strings are rounded to the
    nearest whole unit. Anything else is rejected.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(round(value))
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0
        try:
            return int(round(float(stripped)))
        except ValueError:
            raise ValidationError(f"{field} must be a number")
    raise ValidationError(f"{field} must be a number")


def as_amount(value: Any, field: str = "amount") -> int:
    amount = as_int(value, field)
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT:,}")
    return amount


def as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def as_datetime(value: Any, field: str = "date") -> datetime | None:
    """Accept datetime values or ISO-8601 strings (normalized to UTC-naive)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 datetime")
    raise ValidationError(f"{field} must be a datetime")
