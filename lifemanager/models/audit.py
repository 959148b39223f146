"""
Audit Models for Life Manager

Every significant action in the capture and scheduling pipeline is logged
for audit purposes. This provides:
1. Complete traceability of how a ledger entry came to be
2. Debugging information when a screenshot is misread
3. Evidence of which entries were machine-booked vs. user-confirmed

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step in the capture flow has its own event type.
    """
    # Rule-based extraction
    TEXT_EXTRACTED = "text_extracted"
    EXTRACTION_INSUFFICIENT = "extraction_insufficient"

    # AI-assisted fallback
    AI_PARSE_SUCCEEDED = "ai_parse_succeeded"
    AI_PARSE_FAILED = "ai_parse_failed"

    # Review
    REVIEW_PASSED = "review_passed"
    REVIEW_FLAGGED = "review_flagged"

    # Scheduling
    NEXT_DUE_COMPUTED = "next_due_computed"
    SAVINGS_PROGRESS_COMPUTED = "savings_progress_computed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'payment', 'recurrence', 'savings_plan')"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one capture)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_row(self) -> list[str]:
        """
        Convert to a flat row for tabular audit sinks.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type,
         correlation_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, ensure_ascii=False) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.text_extracted(amount, direction, source, cid)
        event = AuditEventBuilder.ai_parse_failed(error, cid)
    """

    @staticmethod
    def text_extracted(
        amount: str,
        direction: str,
        source: str,
        direction_ambiguous: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TEXT_EXTRACTED,
            entity_type="payment",
            correlation_id=correlation_id,
            description=f"Payment read from text: {direction} {amount}",
            details={
                "amount": amount,
                "direction": direction,
                "source": source,
                "direction_ambiguous": direction_ambiguous,
            },
        )

    @staticmethod
    def extraction_insufficient(
        reason: str,
        partial: Optional[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_INSUFFICIENT,
            severity=AuditSeverity.WARNING,
            entity_type="payment",
            correlation_id=correlation_id,
            description=f"Rule-based extraction gave up: {reason}",
            details={
                "reason": reason,
                "partial": partial,
            },
        )

    @staticmethod
    def ai_parse_succeeded(
        amount: str,
        direction: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_PARSE_SUCCEEDED,
            entity_type="payment",
            correlation_id=correlation_id,
            description=f"AI-assisted parse produced: {direction} {amount}",
            details={
                "amount": amount,
                "direction": direction,
            },
        )

    @staticmethod
    def ai_parse_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_PARSE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="payment",
            correlation_id=correlation_id,
            description="AI-assisted parse failed",
            error_message=error_message,
        )

    @staticmethod
    def review_completed(
        can_auto_apply: bool,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        if can_auto_apply:
            return AuditEvent(
                event_type=AuditEventType.REVIEW_PASSED,
                entity_type="payment",
                correlation_id=correlation_id,
                description="Payment can be booked without confirmation",
                details={"issues": issues},
            )
        return AuditEvent(
            event_type=AuditEventType.REVIEW_FLAGGED,
            severity=AuditSeverity.WARNING,
            entity_type="payment",
            correlation_id=correlation_id,
            description=f"Payment needs user confirmation ({len(issues)} issues)",
            details={"issues": issues},
        )

    @staticmethod
    def next_due_computed(
        frequency: str,
        last_date: date,
        next_date: date,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NEXT_DUE_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="recurrence",
            correlation_id=correlation_id,
            description=f"Next {frequency} due date: {next_date.isoformat()}",
            details={
                "frequency": frequency,
                "last_date": last_date.isoformat(),
                "next_date": next_date.isoformat(),
            },
        )

    @staticmethod
    def savings_progress_computed(
        progress: float,
        expected_progress: float,
        on_track: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVINGS_PROGRESS_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="savings_plan",
            correlation_id=correlation_id,
            description=f"Savings at {progress:.0%} of target ({'on' if on_track else 'off'} track)",
            details={
                "progress": progress,
                "expected_progress": expected_progress,
                "on_track": on_track,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
