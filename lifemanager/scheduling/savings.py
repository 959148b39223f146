"""Savings plan progress projection"""

from datetime import date
from decimal import Decimal, InvalidOperation, localcontext
from typing import Optional, Union

from lifemanager.config import get_settings
from lifemanager.models.schedule import SavingsMilestone, SavingsProgress

Amount = Union[Decimal, int, float, str]

CENT = Decimal("0.01")

# (threshold percent, milestone reached, next milestone), highest first
_MILESTONES = (
    (100, SavingsMilestone.COMPLETE, None),
    (75, SavingsMilestone.THREE_QUARTERS, SavingsMilestone.COMPLETE),
    (50, SavingsMilestone.HALF, SavingsMilestone.THREE_QUARTERS),
    (25, SavingsMilestone.QUARTER, SavingsMilestone.HALF),
    (0, SavingsMilestone.START, SavingsMilestone.QUARTER),
)


def _to_decimal(value: Amount, name: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{name} is not a number: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"{name} must be finite, got {value!r}")
    return amount


def _clamp(value: Decimal, low: Decimal = Decimal(0), high: Decimal = Decimal(1)) -> Decimal:
    return max(low, min(high, value))


def _milestones(percent: int) -> tuple[SavingsMilestone, Optional[SavingsMilestone]]:
    for threshold, reached, upcoming in _MILESTONES:
        if percent >= threshold:
            return reached, upcoming
    return SavingsMilestone.START, SavingsMilestone.QUARTER


def compute_savings_progress(
    start_date: date,
    target_date: date,
    current_amount: Amount,
    target_amount: Amount,
    today: date,
    on_track_tolerance: Optional[float] = None,
) -> SavingsProgress:
    """
    Compute how far a savings plan has come and whether it keeps pace.

    - progress = current / target, clamped to [0, 1]; 0 when target is 0
    - expected_progress = elapsed / total days, clamped to [0, 1]. For a
      plan with no duration it is 1.0 once the target date is reached,
      else 0.0
    - on_track = progress >= expected_progress * tolerance (0.9 by default)

    ``today`` is an argument so the result depends only on the inputs.
    Amounts of any magnitude are accepted; non-numeric, non-finite or
    negative amounts raise ValueError.

    Example:
        start=day 0, target=day 100, saved 50 of 100, today=day 50
        -> progress 0.5, expected 0.5, on track
    """
    if on_track_tolerance is None:
        on_track_tolerance = get_settings().savings.on_track_tolerance

    current = _to_decimal(current_amount, "current_amount")
    target = _to_decimal(target_amount, "target_amount")

    total_days = (target_date - start_date).days
    elapsed_days = max(0, (today - start_date).days)
    remaining_days = max(0, (target_date - today).days)

    with localcontext() as ctx:
        # Cent-rounded results need every integer digit of target * elapsed.
        ctx.prec = max(ctx.prec, target.adjusted() + 12)

        ratio = _clamp(current / target) if target > 0 else Decimal(0)

        if total_days > 0:
            expected_ratio = _clamp(Decimal(elapsed_days) / Decimal(total_days))
            daily_target = (target / total_days).quantize(CENT)
            expected_amount = (target * elapsed_days / total_days).quantize(CENT)
        else:
            expected_ratio = Decimal(1) if today >= target_date else Decimal(0)
            daily_target = Decimal("0.00")
            expected_amount = Decimal("0.00")

    progress = float(ratio)
    expected_progress = float(expected_ratio)
    on_track = progress >= expected_progress * on_track_tolerance

    milestone, next_milestone = _milestones(int(ratio * 100))

    return SavingsProgress(
        current_amount=current,
        target_amount=target,
        elapsed_days=elapsed_days,
        total_days=total_days,
        remaining_days=remaining_days,
        progress=progress,
        expected_progress=expected_progress,
        on_track=on_track,
        daily_target=daily_target,
        expected_amount=expected_amount,
        milestone=milestone,
        next_milestone=next_milestone,
    )
