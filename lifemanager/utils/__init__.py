"""Utility helpers."""

from lifemanager.utils.date_utils import (
    EPOCH,
    add_months,
    from_epoch_day,
    last_day_of_month,
    to_epoch_day,
)

__all__ = [
    "EPOCH",
    "add_months",
    "from_epoch_day",
    "last_day_of_month",
    "to_epoch_day",
]
