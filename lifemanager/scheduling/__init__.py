"""Recurring transaction and savings plan scheduling."""

from lifemanager.scheduling.recurrence import (
    is_due,
    needs_reminder,
    next_due_date,
    next_due_epoch_day,
    upcoming_due_dates,
)
from lifemanager.scheduling.savings import compute_savings_progress

__all__ = [
    "compute_savings_progress",
    "is_due",
    "needs_reminder",
    "next_due_date",
    "next_due_epoch_day",
    "upcoming_due_dates",
]
