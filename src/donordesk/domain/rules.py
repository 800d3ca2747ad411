from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime


class ValidationError(ValueError):
    pass


class InvalidTransition(RuntimeError):
    pass


class RequestNotFound(InvalidTransition):
    pass


def require(value: str | None, field: str) -> None:
    if value is None or str(value).strip() == "":
        raise ValidationError(f"{field} is required.")


def validate_enum(value: str | None, allowed: Iterable[str], field: str) -> None:
    if value is None:
        return
    allowed = list(allowed)
    if value not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(allowed))}")


def parse_date(value: date | str | None, field: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"{field} must be YYYY-MM-DD.") from exc


def parse_datetime(value: datetime | str | None, field: str) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(f"{field} must be ISO 8601.") from exc


def require_positive(value: int | str | None, field: str) -> int:
    message = f"{field} must be a positive integer."
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(message)
    try:
        number = int(value)
    except ValueError as exc:
        raise ValidationError(message) from exc
    if number < 1:
        raise ValidationError(message)
    return number


def require_non_negative(value: int | str | None, field: str) -> int:
    message = f"{field} must be a non-negative integer."
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(message)
    try:
        number = int(value)
    except ValueError as exc:
        raise ValidationError(message) from exc
    if number < 0:
        raise ValidationError(message)
    return number
