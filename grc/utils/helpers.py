"""Shared parsing helpers used by the service layer."""

from datetime import date, datetime

from grc.core.exceptions import ValidationError


def parse_date(value, field: str = "due_date"):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty input and raises ValidationError for anything
    that is not a date. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY
    """
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except ValueError as exc:
        raise ValidationError(
            "Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY.",
            details={field: "Invalid date."},
        ) from exc
