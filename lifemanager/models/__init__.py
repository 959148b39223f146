"""
Data Models Package

This package contains all Pydantic models used in Life Manager.
All data flowing through the system must conform to these schemas.
"""

from lifemanager.models.payment import (
    ACCEPTED_TIMESTAMP_PATTERNS,
    ExtractionResult,
    ExtractionSuccess,
    InsufficientConfidence,
    InsufficientConfidenceReason,
    PartialPaymentInfo,
    PaymentChannel,
    PaymentInfo,
    PaymentSource,
    TransactionDirection,
    extraction_result_adapter,
)
from lifemanager.models.schedule import (
    RecurrenceFrequency,
    RecurrenceRule,
    SavingsMilestone,
    SavingsProgress,
)
from lifemanager.models.review import ReviewIssue, ReviewResult
from lifemanager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Payment models
    "ACCEPTED_TIMESTAMP_PATTERNS",
    "ExtractionResult",
    "ExtractionSuccess",
    "InsufficientConfidence",
    "InsufficientConfidenceReason",
    "PartialPaymentInfo",
    "PaymentChannel",
    "PaymentInfo",
    "PaymentSource",
    "TransactionDirection",
    "extraction_result_adapter",
    # Scheduling models
    "RecurrenceFrequency",
    "RecurrenceRule",
    "SavingsMilestone",
    "SavingsProgress",
    # Review models
    "ReviewIssue",
    "ReviewResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
