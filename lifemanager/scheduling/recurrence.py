"""Next-due-date arithmetic for recurring transactions"""

from datetime import date, timedelta
from typing import List

from lifemanager.models.schedule import RecurrenceFrequency, RecurrenceRule
from lifemanager.utils.date_utils import add_months, from_epoch_day, to_epoch_day


def next_due_date(rule: RecurrenceRule, last_date: date) -> date:
    """
    Compute when a recurring transaction next falls due.

    Rules (``n`` is ``rule.interval``, 1 unless set):
    - DAILY: ``last_date + n days``
    - WEEKLY: the first day after ``last_date`` on the anchor weekday,
      then ``n - 1`` more weeks. Never returns ``last_date`` itself.
    - MONTHLY: the anchor day ``n`` months after ``last_date``'s month,
      clamped to the last day of that month (anchor 31 in February
      gives Feb 28 or Feb 29)
    - YEARLY: same month and day ``n`` years later; Feb 29 becomes
      Feb 28 in a non-leap year

    Example:
        MONTHLY anchor=31, last_date=2023-01-31 -> 2023-02-28
        WEEKLY anchor=1 (Monday), last_date=Monday 2024-01-01 -> 2024-01-08
    """
    if rule.frequency == RecurrenceFrequency.DAILY:
        return last_date + timedelta(days=rule.interval)

    if rule.frequency == RecurrenceFrequency.WEEKLY:
        start = last_date + timedelta(days=1)
        days_ahead = (rule.anchor - start.isoweekday()) % 7
        return start + timedelta(days=days_ahead, weeks=rule.interval - 1)

    if rule.frequency == RecurrenceFrequency.MONTHLY:
        return add_months(last_date, rule.interval, rule.anchor)

    # YEARLY
    return add_months(last_date, 12 * rule.interval, last_date.day)


def next_due_epoch_day(rule: RecurrenceRule, last_epoch_day: int) -> int:
    """next_due_date for dates stored as epoch days"""
    return to_epoch_day(next_due_date(rule, from_epoch_day(last_epoch_day)))


def upcoming_due_dates(rule: RecurrenceRule, last_date: date, count: int) -> List[date]:
    """
    The next ``count`` due dates after ``last_date``, oldest first.

    Each date is computed from the previous one, so a YEARLY rule started
    on Feb 29 stays on Feb 28 once it has been clamped.
    """
    if count <= 0:
        return []

    dates = []
    current = last_date
    for _ in range(count):
        current = next_due_date(rule, current)
        dates.append(current)
    return dates


def is_due(next_due: date, today: date) -> bool:
    """True once the due date has been reached"""
    return next_due <= today


def needs_reminder(next_due: date, today: date, days_before: int) -> bool:
    """True when the due date is still ahead but within the reminder window"""
    if days_before <= 0:
        return False
    return today < next_due <= today + timedelta(days=days_before)
