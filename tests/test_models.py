"""
Tests for Life Manager

Test strategy:
1. Unit tests for individual components (models, extractor, scheduler)
2. Integration tests for flows (with a fake AI model)
3. No real API calls in tests
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from lifemanager.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    ExtractionSuccess,
    InsufficientConfidence,
    InsufficientConfidenceReason,
    PartialPaymentInfo,
    PaymentChannel,
    PaymentInfo,
    PaymentSource,
    RecurrenceFrequency,
    RecurrenceRule,
    ReviewIssue,
    ReviewResult,
    TransactionDirection,
    extraction_result_adapter,
)


class TestPaymentModels:
    """Tests for payment-related Pydantic models."""

    def test_payment_info_creation(self):
        """Test PaymentInfo model creation."""
        payment = PaymentInfo(
            amount=Decimal("38.50"),
            direction=TransactionDirection.EXPENSE,
            counterparty="星巴克",
            timestamp="2024-03-15 12:30:45",
            payment_channel=PaymentChannel.WECHAT,
        )
        assert payment.amount == Decimal("38.50")
        assert payment.counterparty == "星巴克"
        assert payment.direction_ambiguous is False
        assert payment.raw_text == ""

    def test_payment_info_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        for amount in (Decimal("0"), Decimal("-1")):
            with pytest.raises(ValueError):
                PaymentInfo(amount=amount, direction=TransactionDirection.EXPENSE)

    def test_payment_info_counterparty_bounds(self):
        """Test counterparty length limits."""
        PaymentInfo(
            amount=Decimal("1"),
            direction=TransactionDirection.EXPENSE,
            counterparty="A" * 30,
        )
        with pytest.raises(ValueError):
            PaymentInfo(
                amount=Decimal("1"),
                direction=TransactionDirection.EXPENSE,
                counterparty="A" * 31,
            )
        with pytest.raises(ValueError):
            PaymentInfo(
                amount=Decimal("1"),
                direction=TransactionDirection.EXPENSE,
                counterparty="",
            )

    def test_payment_info_timestamp_formats(self):
        """Test that only the printed layouts are accepted."""
        for timestamp in (
            "2024-03-15 12:30",
            "2024-03-15 12:30:45",
            "2024/03/15 12:30:45",
            "2024年3月15日 12:30",
            "2024年3月15日12:30:45",
        ):
            payment = PaymentInfo(
                amount=Decimal("1"),
                direction=TransactionDirection.INCOME,
                timestamp=timestamp,
            )
            assert payment.timestamp == timestamp

        with pytest.raises(ValueError):
            PaymentInfo(
                amount=Decimal("1"),
                direction=TransactionDirection.INCOME,
                timestamp="yesterday",
            )

    def test_payment_info_is_frozen(self):
        """Test that PaymentInfo cannot be modified."""
        payment = PaymentInfo(amount=Decimal("5"), direction=TransactionDirection.EXPENSE)
        with pytest.raises(ValueError):
            payment.amount = Decimal("6")

    def test_raw_text_keeps_whitespace(self):
        """Test that the original input is stored untouched."""
        payment = PaymentInfo(
            amount=Decimal("5"),
            direction=TransactionDirection.EXPENSE,
            raw_text="  ¥5\n",
        )
        assert payment.raw_text == "  ¥5\n"

    def test_source_channel_mapping(self):
        """Test that sources map onto channels."""
        assert PaymentSource.WECHAT_PAY.channel == PaymentChannel.WECHAT
        assert PaymentSource.ALIPAY.channel == PaymentChannel.ALIPAY
        assert PaymentSource.BANK_APP.channel == PaymentChannel.BANK
        assert PaymentSource.CLOUD_PAY.channel == PaymentChannel.CLOUD_PAY
        assert PaymentSource.INVOICE.channel is None
        assert PaymentSource.RECEIPT.channel is None
        assert PaymentSource.UNKNOWN.channel is None


class TestExtractionResult:
    """Tests for the tagged extraction result."""

    def test_success_round_trip(self):
        """Test that a success survives plain data."""
        result = ExtractionSuccess(
            payment=PaymentInfo(
                amount=Decimal("12.34"),
                direction=TransactionDirection.EXPENSE,
                timestamp="2024/01/02 03:04",
                raw_text="¥12.34",
            ),
            source=PaymentSource.ALIPAY,
        )
        data = result.model_dump(mode="json")
        assert data["kind"] == "success"

        restored = extraction_result_adapter.validate_python(data)
        assert isinstance(restored, ExtractionSuccess)
        assert restored == result

    def test_insufficient_round_trip(self):
        """Test that an insufficient result survives JSON."""
        result = InsufficientConfidence(
            reason=InsufficientConfidenceReason.NO_AMOUNT,
            raw_text="支付成功",
            partial=PartialPaymentInfo(direction=TransactionDirection.EXPENSE),
        )
        payload = extraction_result_adapter.dump_json(result)
        restored = extraction_result_adapter.validate_json(payload)
        assert isinstance(restored, InsufficientConfidence)
        assert restored.reason == InsufficientConfidenceReason.NO_AMOUNT
        assert restored.partial.direction == TransactionDirection.EXPENSE

    def test_reason_values(self):
        """Test the reason strings."""
        assert InsufficientConfidenceReason.NO_TEXT.value == "no text"
        assert InsufficientConfidenceReason.NO_AMOUNT.value == "no amount"

    def test_unknown_kind_rejected(self):
        """Test that the discriminator is enforced."""
        with pytest.raises(ValueError):
            extraction_result_adapter.validate_python({"kind": "maybe"})


class TestRecurrenceRule:
    """Tests for recurrence rule construction."""

    def test_weekly_needs_weekday_anchor(self):
        """Test that WEEKLY rules need a weekday anchor."""
        RecurrenceRule(frequency=RecurrenceFrequency.WEEKLY, anchor=7)
        with pytest.raises(ValueError):
            RecurrenceRule(frequency=RecurrenceFrequency.WEEKLY)
        with pytest.raises(ValueError):
            RecurrenceRule(frequency=RecurrenceFrequency.WEEKLY, anchor=8)

    def test_monthly_needs_day_anchor(self):
        """Test that MONTHLY rules need a day-of-month anchor."""
        RecurrenceRule(frequency=RecurrenceFrequency.MONTHLY, anchor=31)
        with pytest.raises(ValueError):
            RecurrenceRule(frequency=RecurrenceFrequency.MONTHLY, anchor=0)
        with pytest.raises(ValueError):
            RecurrenceRule(frequency=RecurrenceFrequency.MONTHLY, anchor=32)

    def test_daily_and_yearly_take_no_anchor(self):
        """Test that DAILY and YEARLY rules refuse an anchor."""
        RecurrenceRule(frequency=RecurrenceFrequency.DAILY)
        RecurrenceRule(frequency=RecurrenceFrequency.YEARLY)
        with pytest.raises(ValueError, match="take no anchor"):
            RecurrenceRule(frequency=RecurrenceFrequency.DAILY, anchor=1)
        with pytest.raises(ValueError, match="take no anchor"):
            RecurrenceRule(frequency=RecurrenceFrequency.YEARLY, anchor=1)

    def test_interval_must_be_positive(self):
        """Test that the interval is at least 1."""
        with pytest.raises(ValueError):
            RecurrenceRule(frequency=RecurrenceFrequency.DAILY, interval=0)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TEXT_EXTRACTED,
            description="Test payment extracted",
        )
        assert event.event_type == AuditEventType.TEXT_EXTRACTED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.AI_PARSE_SUCCEEDED,
            description="AI parse ok",
            details={"amount": "12.00", "direction": "expense"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "ai_parse_succeeded"
        assert log_dict["details"]["amount"] == "12.00"
        assert log_dict["correlation_id"] is None

    def test_audit_event_to_row(self):
        """Test conversion to a flat row."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.REVIEW_FLAGGED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Needs confirmation",
            details={"counterparty": "星巴克"},
        )
        row = event.to_row()
        assert len(row) == 9
        assert row[2] == "review_flagged"
        assert row[3] == "warning"
        assert row[5] == str(correlation_id)
        assert "星巴克" in row[7]
        assert row[8] == ""

    def test_builder_text_extracted(self):
        """Test AuditEventBuilder.text_extracted."""
        correlation_id = uuid4()
        event = AuditEventBuilder.text_extracted(
            amount="38.00",
            direction="expense",
            source="wechat_pay",
            direction_ambiguous=False,
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.TEXT_EXTRACTED
        assert event.entity_type == "payment"
        assert event.correlation_id == correlation_id
        assert event.details["source"] == "wechat_pay"

    def test_builder_review_completed(self):
        """Test that the review verdict picks the event type."""
        passed = AuditEventBuilder.review_completed(can_auto_apply=True, issues=[])
        flagged = AuditEventBuilder.review_completed(
            can_auto_apply=False,
            issues=[{"field": "direction"}],
        )
        assert passed.event_type == AuditEventType.REVIEW_PASSED
        assert passed.severity == AuditSeverity.INFO
        assert flagged.event_type == AuditEventType.REVIEW_FLAGGED
        assert flagged.severity == AuditSeverity.WARNING

    def test_builder_system_error(self):
        """Test the system error builder."""
        event = AuditEventBuilder.system_error(
            error_type="ValueError",
            error_message="boom",
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "boom"
        assert event.details == {}

    def test_builder_external_service_error(self):
        """Test the external service error builder."""
        event = AuditEventBuilder.external_service_error(
            service="gemini",
            error_message="503",
        )
        assert event.event_type == AuditEventType.EXTERNAL_SERVICE_ERROR
        assert event.severity == AuditSeverity.ERROR
        assert event.details == {"service": "gemini"}


class TestReviewResult:
    """Tests for review result helpers."""

    def test_review_result_keeps_info_issues(self):
        """Test that informational issues produce no warnings."""
        result = ReviewResult(
            can_auto_apply=True,
            issues=[
                ReviewIssue(
                    field="counterparty",
                    issue_type="missing",
                    message="No counterparty",
                    severity="info",
                ),
            ],
        )
        assert result.warnings == []
        assert [issue.severity for issue in result.issues] == ["info"]

    @pytest.mark.parametrize("severity", ["fatal", "error"])
    def test_review_issue_severity_pattern(self, severity):
        """Test that only warning and info severities are accepted."""
        with pytest.raises(ValueError):
            ReviewIssue(
                field="amount",
                issue_type="missing",
                message="No amount",
                severity=severity,
            )
