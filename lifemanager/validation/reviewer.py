"""
Payment Review

Decides whether an extracted payment can be booked without asking the user.

Checks fall into two groups:

COMPLETENESS:
- Counterparty present
- Timestamp present and in a readable format

PLAUSIBILITY:
- Direction decided by keywords rather than by the fallback
- Timestamp not in the future
- Amount neither absurdly high nor suspiciously low

Missing optional fields are informational. Anything that may mean the
extraction guessed wrong is a warning and blocks auto-apply.

IMPORTANT: Review NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from lifemanager.config import get_settings
from lifemanager.extraction.payment_text import parse_timestamp
from lifemanager.models.payment import PaymentInfo
from lifemanager.models.review import ReviewIssue, ReviewResult


class PaymentReviewValidator:
    """
    Reviews extracted payments before they are booked.

    Stateless apart from the thresholds read at construction, so one
    instance can be shared.
    """

    def __init__(
        self,
        max_payment_amount: Optional[float] = None,
        future_tolerance_minutes: Optional[int] = None,
    ):
        """
        Initialize validator.

        Args:
            max_payment_amount: Largest amount accepted without a warning.
                                Defaults to the app setting.
            future_tolerance_minutes: How far ahead of ``now`` a timestamp
                                      may be. Defaults to the app setting.
        """
        if max_payment_amount is None or future_tolerance_minutes is None:
            app_settings = get_settings().app
            if max_payment_amount is None:
                max_payment_amount = app_settings.max_payment_amount
            if future_tolerance_minutes is None:
                future_tolerance_minutes = app_settings.future_timestamp_tolerance_minutes

        self._max_amount = Decimal(str(max_payment_amount))
        self._future_tolerance = timedelta(minutes=future_tolerance_minutes)

    def _check_completeness(self, payment: PaymentInfo) -> list[ReviewIssue]:
        issues = []

        if payment.counterparty is None:
            issues.append(ReviewIssue(
                field="counterparty",
                issue_type="missing",
                message="No counterparty was found in the text",
                severity="info",
                suggested_fix="You can add who was paid manually",
            ))

        if payment.timestamp is None:
            issues.append(ReviewIssue(
                field="timestamp",
                issue_type="missing",
                message="No transaction time was found in the text",
                severity="info",
                suggested_fix="The capture time will be used instead",
            ))

        return issues

    def _check_plausibility(
        self,
        payment: PaymentInfo,
        now: datetime,
    ) -> list[ReviewIssue]:
        issues = []

        if payment.direction_ambiguous:
            issues.append(ReviewIssue(
                field="direction",
                issue_type="ambiguous",
                message=(
                    f"Could not tell whether this is income or an expense; "
                    f"assumed {payment.direction.value}"
                ),
                severity="warning",
                suggested_fix="Please confirm the transaction direction",
            ))

        if payment.timestamp is not None:
            parsed = parse_timestamp(payment.timestamp)
            if parsed is None:
                issues.append(ReviewIssue(
                    field="timestamp",
                    issue_type="invalid_value",
                    message=f"Transaction time ({payment.timestamp}) is not a valid date",
                    severity="warning",
                    suggested_fix="Please verify the transaction time",
                ))
            elif parsed > now + self._future_tolerance:
                issues.append(ReviewIssue(
                    field="timestamp",
                    issue_type="future_date",
                    message=f"Transaction time ({payment.timestamp}) is in the future",
                    severity="warning",
                    suggested_fix="Please verify the transaction time",
                ))

        if payment.amount > self._max_amount:
            issues.append(ReviewIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({payment.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if payment.amount < Decimal("1"):
            issues.append(ReviewIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({payment.amount}) seems unusually low",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        return issues

    def review(
        self,
        payment: PaymentInfo,
        now: Optional[datetime] = None,
    ) -> ReviewResult:
        """
        Review an extracted payment.

        Args:
            payment: The payment to review
            now: Reference time for the future-timestamp check
                 (naive local time, defaults to the current time)

        Returns:
            ReviewResult with all issues found
        """
        if now is None:
            now = datetime.now()

        issues = self._check_completeness(payment)
        issues.extend(self._check_plausibility(payment, now))

        warnings = [issue.message for issue in issues if issue.severity == "warning"]
        can_auto_apply = not warnings

        return ReviewResult(
            can_auto_apply=can_auto_apply,
            issues=issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(self, result: ReviewResult) -> str:
        """
        Generate a user-friendly summary of review results.

        This is what we show to non-technical users.
        """
        if result.can_auto_apply:
            return "✅ All checks passed! This payment can be recorded automatically."

        lines = []

        if result.warnings:
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        lines.append("")
        lines.append("Please confirm the details before saving.")

        return "\n".join(lines)
