"""
Scheduling Data Models

Recurrence rules for recurring transactions and the computed progress of a
savings plan. Neither is persisted here - the storage layer owns durability.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RecurrenceFrequency(str, Enum):
    """How often a recurring transaction repeats."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RecurrenceRule(BaseModel):
    """
    When a recurring transaction falls due.

    ``anchor`` is the ISO weekday (1=Monday..7=Sunday) for WEEKLY rules and
    the day of month (1-31) for MONTHLY rules. DAILY and YEARLY rules have
    no anchor.
    """
    model_config = ConfigDict(frozen=True)

    frequency: RecurrenceFrequency
    anchor: Optional[int] = None
    interval: int = Field(
        default=1,
        ge=1,
        le=366,
        description="Repeat every N periods"
    )

    @model_validator(mode="after")
    def validate_anchor(self) -> "RecurrenceRule":
        """Anchor must match the frequency."""
        if self.frequency == RecurrenceFrequency.WEEKLY:
            if self.anchor is None or not 1 <= self.anchor <= 7:
                raise ValueError("Weekly rules need an anchor weekday between 1 and 7")
        elif self.frequency == RecurrenceFrequency.MONTHLY:
            if self.anchor is None or not 1 <= self.anchor <= 31:
                raise ValueError("Monthly rules need an anchor day between 1 and 31")
        elif self.anchor is not None:
            raise ValueError(f"{self.frequency.value.capitalize()} rules take no anchor")
        return self


class SavingsMilestone(str, Enum):
    """Quarter marks on the way to a savings target."""
    START = "start"
    QUARTER = "quarter"
    HALF = "half"
    THREE_QUARTERS = "three_quarters"
    COMPLETE = "complete"


class SavingsProgress(BaseModel):
    """
    Where a savings plan stands on a given day.

    Computed on demand, never stored.
    """
    model_config = ConfigDict(frozen=True)

    current_amount: Decimal = Field(..., ge=0)
    target_amount: Decimal = Field(..., ge=0)

    elapsed_days: int = Field(..., ge=0)
    total_days: int = Field(..., description="May be zero or negative for a degenerate plan")
    remaining_days: int = Field(..., ge=0)

    progress: float = Field(..., ge=0.0, le=1.0)
    expected_progress: float = Field(..., ge=0.0, le=1.0)
    on_track: bool

    daily_target: Decimal = Field(..., ge=0)
    expected_amount: Decimal = Field(..., ge=0)

    milestone: SavingsMilestone
    next_milestone: Optional[SavingsMilestone] = None

    @property
    def progress_percent(self) -> int:
        """Progress as a whole percentage (truncated)."""
        return int(self.progress * 100)
