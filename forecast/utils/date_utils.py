# forecast/utils/date_utils.py
"""
Calendar helpers for month/year bucketing.

Months are addressed the way the UI addresses them: a (year, month index)
pair where the month index runs from 0 (January) to 11 (December).
"""

import calendar
from datetime import date, datetime

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta


def parse_date(value):
    """
    Converts an ISO date string (or date/datetime) into a `date`.

    Returns:
        date, or None for missing, empty or unparseable values.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return isoparse(value.strip()).date()
    except (ValueError, OverflowError):
        return None


def month_start(year, month):
    return date(year, month + 1, 1)


def month_end(year, month):
    return date(year, month + 1, calendar.monthrange(year, month + 1)[1])


def year_start(year):
    return date(year, 1, 1)


def year_end(year):
    return date(year, 12, 31)


def month_number(year, month):
    """Continuous month counter, so that consecutive months differ by 1."""
    return year * 12 + month


def month_number_of(day):
    return month_number(day.year, day.month - 1)


def add_months(day, months):
    """Adds calendar months, clamping to the end of shorter months (Jan 31 + 1 = Feb 28)."""
    return day + relativedelta(months=months)


def inclusive_days(start, end):
    """Number of days in [start, end], both ends included. Non-positive if end < start."""
    return (end - start).days + 1


def overlap_days(start, end, bucket_start, bucket_end):
    """Days shared by [start, end] and [bucket_start, bucket_end], inclusive."""
    overlap_start = max(start, bucket_start)
    overlap_end = min(end, bucket_end)
    if overlap_start > overlap_end:
        return 0
    return inclusive_days(overlap_start, overlap_end)
