"""
Audit Logger

DESIGN DECISION: Every step that turns text into a ledger entry, and every
schedule computation the app acts on, is logged. This provides:
1. Traceability from a booked payment back to the text it came from
2. Debugging capability when a screenshot is misread
3. A record of which entries were booked without confirmation

The audit logger:
- Is async so a slow sink does not block the capture flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

import structlog

from lifemanager.models.audit import AuditEvent, AuditEventBuilder
from lifemanager.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional audit sink (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("lifemanager.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_text_extracted(
        self,
        amount: str,
        direction: str,
        source: str,
        direction_ambiguous: bool,
        correlation_id: UUID,
    ) -> None:
        """Log a successful rule-based extraction."""
        event = AuditEventBuilder.text_extracted(
            amount=amount,
            direction=direction,
            source=source,
            direction_ambiguous=direction_ambiguous,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_extraction_insufficient(
        self,
        reason: str,
        partial: Optional[dict],
        correlation_id: UUID,
    ) -> None:
        """Log an extraction that found no usable amount."""
        event = AuditEventBuilder.extraction_insufficient(
            reason=reason,
            partial=partial,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_ai_parse_succeeded(
        self,
        amount: str,
        direction: str,
        correlation_id: UUID,
    ) -> None:
        """Log a payment recovered by the AI fallback."""
        event = AuditEventBuilder.ai_parse_succeeded(
            amount=amount,
            direction=direction,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_ai_parse_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log an AI fallback failure."""
        event = AuditEventBuilder.ai_parse_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_review_completed(
        self,
        can_auto_apply: bool,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log the review verdict for a payment."""
        event = AuditEventBuilder.review_completed(
            can_auto_apply=can_auto_apply,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_next_due_computed(
        self,
        frequency: str,
        last_date: date,
        next_date: date,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a recurring transaction being rolled forward."""
        event = AuditEventBuilder.next_due_computed(
            frequency=frequency,
            last_date=last_date,
            next_date=next_date,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_savings_progress_computed(
        self,
        progress: float,
        expected_progress: float,
        on_track: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a savings plan check."""
        event = AuditEventBuilder.savings_progress_computed(
            progress=progress,
            expected_progress=expected_progress,
            on_track=on_track,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new capture (one screenshot or one
    notification). Pass it through all subsequent operations.
    """
    return uuid4()
