"""
Calendar arithmetic for chore valuation and residency.

Months are calendar months of the naive UTC timestamps the caller supplies.
Break intervals are half-open date ranges [start, end).
"""
import calendar
import math
from datetime import date, datetime, timedelta

EPOCH = datetime(1970, 1, 1)
HOUR = timedelta(hours=1)


def to_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def month_start(moment: date | datetime) -> datetime:
    return datetime(moment.year, moment.month, 1)


def next_month_start(moment: date | datetime) -> datetime:
    if moment.month == 12:
        return datetime(moment.year + 1, 1, 1)
    return datetime(moment.year, moment.month + 1, 1)


def prev_month_start(moment: date | datetime) -> datetime:
    return month_start(month_start(moment) - timedelta(days=1))


def days_in_month(moment: date | datetime) -> int:
    return calendar.monthrange(moment.year, moment.month)[1]


def hours_in_month(moment: date | datetime) -> int:
    return days_in_month(moment) * 24


def whole_hours_between(start: datetime, end: datetime) -> int:
    """Elapsed whole hours, rounded down, never negative."""
    if end <= start:
        return 0
    return math.floor((end - start) / HOUR)


def interval_scalar(hours: int, moment: date | datetime, denominator: float = 1.0) -> float:
    """
    Fraction of the monthly point budget attributable to `hours`.

    Example:
        interval_scalar(1, datetime(2000, 1, 2))  -> 1 / 744
    """
    return hours / (hours_in_month(moment) * denominator)


def merge_intervals(intervals: list[tuple[date, date]]) -> list[tuple[date, date]]:
    """Merge overlapping or adjacent [start, end) intervals."""
    merged: list[tuple[date, date]] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def excluded_days(month_ref: date | datetime, intervals: list[tuple[date, date]]) -> int:
    """
    Days of the month covered by at least one interval.

    Intervals are clipped to the month boundaries before merging, so a break
    spanning the whole month excludes every day of it.
    """
    first = to_date(month_start(month_ref))
    last = to_date(next_month_start(month_ref))

    clipped = []
    for start, end in intervals:
        start, end = max(to_date(start), first), min(to_date(end), last)
        if start < end:
            clipped.append((start, end))

    return sum((end - start).days for start, end in merge_intervals(clipped))


def active_fraction(month_ref: date | datetime, intervals: list[tuple[date, date]]) -> float:
    """
    Fraction of the month not covered by any interval.

    Example:
        feb = date(2027, 2, 1)  # 28 days
        active_fraction(feb, [(date(2027, 2, 1), date(2027, 2, 8))])  -> 0.75
    """
    total = days_in_month(month_ref)
    return (total - excluded_days(month_ref, intervals)) / total
