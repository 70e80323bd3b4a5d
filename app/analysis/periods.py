"""
Period selection: maps a period index from the client to a concrete date range.
"""

from datetime import date, datetime, timedelta
from enum import IntEnum
from typing import Any, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta


class PeriodToken(IntEnum):
    THIS_WEEK = 0
    THIS_MONTH = 1
    LAST_3_MONTHS = 2
    LAST_6_MONTHS = 3
    THIS_YEAR = 4

    @property
    def label(self) -> str:
        return _PERIOD_LABELS[self]


_PERIOD_LABELS = {
    PeriodToken.THIS_WEEK: "This Week",
    PeriodToken.THIS_MONTH: "This Month",
    PeriodToken.LAST_3_MONTHS: "Last 3 Months",
    PeriodToken.LAST_6_MONTHS: "Last 6 Months",
    PeriodToken.THIS_YEAR: "This Year",
}

DEFAULT_PERIOD = PeriodToken.THIS_MONTH


def to_period_token(period_index: Any) -> PeriodToken:
    """Unknown or malformed indexes fall back to This Month."""
    try:
        return PeriodToken(period_index)
    except (ValueError, TypeError):
        return DEFAULT_PERIOD


def resolve_period(
    period_index: Any,
    now: Optional[Union[date, datetime]] = None,
) -> Tuple[date, date]:
    """
    Resolve a period index to an inclusive ``(from, to)`` date range ending at ``now``.

    Weeks start on Sunday. Month arithmetic is calendar based: the day of
    month is kept and clamped to the target month's length
    (2024-05-31 minus 3 months is 2024-02-29).
    """
    if now is None:
        now = datetime.now()
    today = now.date() if isinstance(now, datetime) else now

    token = to_period_token(period_index)

    if token is PeriodToken.THIS_WEEK:
        days_since_sunday = (today.weekday() + 1) % 7
        return today - timedelta(days=days_since_sunday), today
    if token is PeriodToken.LAST_3_MONTHS:
        return today - relativedelta(months=3), today
    if token is PeriodToken.LAST_6_MONTHS:
        return today - relativedelta(months=6), today
    if token is PeriodToken.THIS_YEAR:
        return date(today.year, 1, 1), today
    return today.replace(day=1), today


def format_period_label(start: date, end: date) -> str:
    """``Mar 01 - Mar 15, 2024``"""
    return f"{start:%b %d} - {end:%b %d, %Y}"
