"""Billing period helpers. Periods are calendar months written as YYYY-MM."""

import re
from datetime import date

from hostel_billing.services.errors import ValidationError

PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def parse_period(period: str) -> tuple[int, int]:
    """Split a YYYY-MM period into (year, month).

    Raises:
        ValidationError: If the period is malformed or the month is out of range
    """
    if not isinstance(period, str):
        raise ValidationError(f"Invalid period: {period!r} (expected YYYY-MM)")
    match = PERIOD_PATTERN.match(period)
    if not match:
        raise ValidationError(f"Invalid period: {period!r} (expected YYYY-MM)")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid period: {period!r} (month must be 01-12)")
    return year, month


def format_period(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def previous_period(period: str) -> str:
    """Return the period immediately before the given one."""
    year, month = parse_period(period)
    if month == 1:
        return format_period(year - 1, 12)
    return format_period(year, month - 1)


def current_period(today: date | None = None) -> str:
    today = today or date.today()
    return format_period(today.year, today.month)


def rent_due_date(period: str, day: int) -> date:
    """Fixed day-of-month due date for a period's rent."""
    year, month = parse_period(period)
    return date(year, month, day)


__all__ = [
    "PERIOD_PATTERN",
    "parse_period",
    "format_period",
    "previous_period",
    "current_period",
    "rent_due_date",
]
