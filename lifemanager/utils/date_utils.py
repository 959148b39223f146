"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta

EPOCH = date(1970, 1, 1)


def to_epoch_day(value: date) -> int:
    """Days since 1970-01-01 (negative before it)"""
    return (value - EPOCH).days


def from_epoch_day(epoch_day: int) -> date:
    """Inverse of to_epoch_day"""
    return EPOCH + timedelta(days=epoch_day)


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the given month"""
    return calendar.monthrange(year, month)[1]


def add_months(value: date, months: int, day: int) -> date:
    """
    Move `months` calendar months from `value` and land on `day`,
    clamped to the last day of the target month.
    """
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day, last_day_of_month(year, month)))
