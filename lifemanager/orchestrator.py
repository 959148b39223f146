"""
Main Orchestrator for Life Manager

This module ties together all the components and defines the
end-to-end flows for:
1. Payment capture (text → rules → AI fallback → review)
2. Schedule tracking (recurring due dates, savings plan progress)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Rules run first; the AI is only asked when they found no amount
- A payment is only auto-applied when review raised nothing
- Every step is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from lifemanager.agents import AIParseError, AIServiceError, PaymentParseAgent
from lifemanager.audit import AuditLogger, create_correlation_id
from lifemanager.extraction import (
    NotificationParser,
    PaymentTextExtractor,
    channel_for_package,
    compose_notification_text,
)
from lifemanager.models import (
    ExtractionResult,
    ExtractionSuccess,
    InsufficientConfidenceReason,
    PaymentChannel,
    PaymentInfo,
    RecurrenceRule,
    ReviewResult,
    SavingsProgress,
)
from lifemanager.scheduling import compute_savings_progress, next_due_date
from lifemanager.storage import AuditStorageInterface
from lifemanager.validation import PaymentReviewValidator

logger = structlog.get_logger(__name__)


class CaptureOutcome(BaseModel):
    """Everything one capture produced, for the app to act on."""

    correlation_id: UUID
    result: ExtractionResult = Field(
        ...,
        description="What the rule-based extractor returned"
    )
    payment: Optional[PaymentInfo] = Field(
        default=None,
        description="The payment to book, from the rules or the AI fallback"
    )
    parsed_by: Optional[Literal["rules", "ai"]] = None
    review: Optional[ReviewResult] = None
    ai_error: Optional[str] = None

    @property
    def can_auto_apply(self) -> bool:
        return self.review is not None and self.review.can_auto_apply


class PaymentCaptureFlow:
    """
    Orchestrates payment capture.

    Flow:
    1. Extract → Rule-based extraction of the text
    2. Fallback → AI parse, only when no amount was found and an agent is set
    3. Review → Decide whether the payment may be booked unattended
    4. Return → The app books it or asks the user

    Nothing is persisted here apart from the audit trail.
    """

    def __init__(
        self,
        extractor: Optional[PaymentTextExtractor] = None,
        agent: Optional[PaymentParseAgent] = None,
        reviewer: Optional[PaymentReviewValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._extractor = extractor or PaymentTextExtractor()
        self._notification_parser = NotificationParser(self._extractor)
        self._agent = agent
        self._reviewer = reviewer or PaymentReviewValidator()
        self._audit_logger = audit_logger

    async def capture(
        self,
        text: Optional[str],
        correlation_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> CaptureOutcome:
        """
        Capture a payment from screenshot text.

        Args:
            text: OCR text of the screenshot
            correlation_id: Correlates the audit events of this capture
            now: Reference time for the review (defaults to the current time)

        Returns:
            CaptureOutcome. ``payment`` is None when neither the rules
            nor the AI could read an amount.
        """
        correlation_id = correlation_id or create_correlation_id()
        result = self._extractor.extract(text)
        return await self._complete(result, text or "", correlation_id, now)

    async def capture_notification(
        self,
        package_name: str,
        title: str,
        content: str,
        big_text: str = "",
        correlation_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> CaptureOutcome:
        """
        Capture a payment from a payment-app notification.

        The posting app decides the channel, also for AI-parsed payments.
        """
        correlation_id = correlation_id or create_correlation_id()
        result = self._notification_parser.parse(package_name, title, content, big_text)
        text = compose_notification_text(title, content, big_text)

        return await self._complete(
            result,
            text,
            correlation_id,
            now,
            channel_override=channel_for_package(package_name),
        )

    async def _complete(
        self,
        result: ExtractionResult,
        text: str,
        correlation_id: UUID,
        now: Optional[datetime],
        channel_override: Optional[PaymentChannel] = None,
    ) -> CaptureOutcome:
        payment = None
        parsed_by = None
        ai_error = None

        if isinstance(result, ExtractionSuccess):
            payment = result.payment
            parsed_by = "rules"
            if self._audit_logger:
                await self._audit_logger.log_text_extracted(
                    amount=str(payment.amount),
                    direction=payment.direction.value,
                    source=result.source.value,
                    direction_ambiguous=payment.direction_ambiguous,
                    correlation_id=correlation_id,
                )
        else:
            if self._audit_logger:
                await self._audit_logger.log_extraction_insufficient(
                    reason=result.reason.value,
                    partial=result.partial.model_dump(mode="json") if result.partial else None,
                    correlation_id=correlation_id,
                )

            if self._agent is not None and result.reason != InsufficientConfidenceReason.NO_TEXT:
                try:
                    payment = await self._agent.parse(text, result.partial)
                except AIServiceError as e:
                    ai_error = str(e)
                    logger.warning("ai_fallback_unreachable", error=ai_error)
                    if self._audit_logger:
                        await self._audit_logger.log_external_service_error(
                            service="gemini",
                            error_message=ai_error,
                            correlation_id=correlation_id,
                        )
                except AIParseError as e:
                    ai_error = str(e)
                    logger.warning("ai_fallback_failed", error=ai_error)
                    if self._audit_logger:
                        await self._audit_logger.log_ai_parse_failed(
                            error_message=ai_error,
                            correlation_id=correlation_id,
                        )
                except Exception as e:
                    if self._audit_logger:
                        await self._audit_logger.log_error(
                            error_type=type(e).__name__,
                            error_message=str(e),
                            correlation_id=correlation_id,
                        )
                    raise

                if payment is not None:
                    parsed_by = "ai"
                    if channel_override is not None:
                        payment = payment.model_copy(update={"payment_channel": channel_override})
                    if self._audit_logger:
                        await self._audit_logger.log_ai_parse_succeeded(
                            amount=str(payment.amount),
                            direction=payment.direction.value,
                            correlation_id=correlation_id,
                        )

        review = None
        if payment is not None:
            review = self._reviewer.review(payment, now=now)
            if self._audit_logger:
                await self._audit_logger.log_review_completed(
                    can_auto_apply=review.can_auto_apply,
                    issues=[issue.model_dump() for issue in review.issues],
                    correlation_id=correlation_id,
                )

        return CaptureOutcome(
            correlation_id=correlation_id,
            result=result,
            payment=payment,
            parsed_by=parsed_by,
            review=review,
            ai_error=ai_error,
        )


class ScheduleTracker:
    """
    Audited front for the scheduling functions.

    The functions themselves stay pure; this class only adds the audit
    events the app wants when it rolls a recurring entry forward or
    checks a savings plan.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit_logger = audit_logger

    async def roll_forward(
        self,
        rule: RecurrenceRule,
        last_date: date,
        correlation_id: Optional[UUID] = None,
    ) -> date:
        """Next due date of a recurring transaction."""
        next_date = next_due_date(rule, last_date)
        if self._audit_logger:
            await self._audit_logger.log_next_due_computed(
                frequency=rule.frequency.value,
                last_date=last_date,
                next_date=next_date,
                correlation_id=correlation_id,
            )
        return next_date

    async def check_savings(
        self,
        start_date: date,
        target_date: date,
        current_amount: Union[Decimal, int, float, str],
        target_amount: Union[Decimal, int, float, str],
        today: date,
        correlation_id: Optional[UUID] = None,
    ) -> SavingsProgress:
        """Progress of a savings plan as of ``today``."""
        progress = compute_savings_progress(
            start_date=start_date,
            target_date=target_date,
            current_amount=current_amount,
            target_amount=target_amount,
            today=today,
        )
        if self._audit_logger:
            await self._audit_logger.log_savings_progress_computed(
                progress=progress.progress,
                expected_progress=progress.expected_progress,
                on_track=progress.on_track,
                correlation_id=correlation_id,
            )
        return progress


def create_app_components(
    use_ai: bool = True,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> tuple[PaymentCaptureFlow, ScheduleTracker]:
    """
    Factory function to create all application components.

    Args:
        use_ai: Whether to set up the Gemini fallback.
                Set to False for testing or when no key is configured.
        audit_storage: Audit sink. If None, audit events are only
                       logged locally.

    Returns:
        (capture_flow, schedule_tracker)
    """
    audit_logger = AuditLogger(audit_storage)

    agent = None
    if use_ai:
        try:
            agent = PaymentParseAgent()
        except Exception as e:
            # AI not configured - continue with rules only
            logger.warning("ai_fallback_unavailable", error=str(e))
            agent = None

    capture_flow = PaymentCaptureFlow(
        agent=agent,
        audit_logger=audit_logger,
    )
    schedule_tracker = ScheduleTracker(audit_logger=audit_logger)

    return capture_flow, schedule_tracker
