# backend/argfolio/utils/date_utils.py
"""
Date utility functions for the portfolio engine.

Shared helpers for day counting used by fixed deposits and yield
projections. All functions are calendar-day based (Argentine TNA
conventions accrue on calendar days, not business days).

Usage:
    from argfolio.utils.date_utils import days_between

    remaining = days_between(as_of.date(), maturity.date())
"""

import calendar
from datetime import date, timedelta


def days_between(start: date, end: date) -> int:
    """
    Signed number of calendar days from start to end.

    Example:
        >>> days_between(date(2024, 1, 1), date(2024, 1, 31))
        30
    """
    return (end - start).days


def days_left_in_month(d: date) -> int:
    """Calendar days remaining after d until the end of its month."""
    last_day = calendar.monthrange(d.year, d.month)[1]
    return last_day - d.day


def days_left_in_year(d: date) -> int:
    """Calendar days remaining after d until December 31st."""
    return (date(d.year, 12, 31) - d).days


def iter_days(start: date, end: date) -> list[date]:
    """
    Get every date in a range.

    Args:
        start: First date in range (inclusive)
        end: Last date in range (inclusive)

    Returns:
        List of dates sorted chronologically, empty if start > end
    """
    days = []
    current = start

    while current <= end:
        days.append(current)
        current += timedelta(days=1)

    return days
