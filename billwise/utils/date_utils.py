"""Date manipulation utilities"""

import calendar
from datetime import date, datetime
from typing import Optional, Tuple


def add_months(year: int, month: int, months: int) -> Tuple[int, int]:
    """Shift a (year, month) pair by a number of months"""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def month_index(year: int, month: int) -> int:
    """Linear month number, handy for range comparisons"""
    return year * 12 + (month - 1)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, pulling day 29-31 back to the month's last day"""
    return date(year, month, min(day, days_in_month(year, month)))


def coerce_date(value: object) -> Optional[date]:
    """
    Best-effort conversion of a stored transaction date.

    Accepts date, datetime, and ISO strings. Anything else (including
    malformed strings) yields None so callers can treat it as non-matching.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            return None
    return None
