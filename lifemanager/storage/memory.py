"""
In-memory audit storage.

Used by tests and by apps that only need the trail for the current
session. Events are kept in insertion order.
"""

from typing import Optional
from uuid import UUID

from lifemanager.models.audit import AuditEvent
from lifemanager.storage.interface import AuditStorageInterface, StorageFullError

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "correlation_id",
    "description",
    "details",
    "error_message",
]


class InMemoryAuditStorage(AuditStorageInterface):
    """
    Append-only audit log held in a list.

    Args:
        max_events: Optional capacity. Appending beyond it raises
                    StorageFullError instead of dropping old events.
    """

    def __init__(self, max_events: Optional[int] = None):
        self._events: list[AuditEvent] = []
        self._max_events = max_events

    def __len__(self) -> int:
        return len(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        if self._max_events is not None and len(self._events) >= self._max_events:
            raise StorageFullError(
                f"Audit log is full ({self._max_events} events)"
            )
        self._events.append(event.model_copy(deep=True))
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_entity_type(
        self,
        entity_type: str,
    ) -> list[AuditEvent]:
        """Get events by entity type."""
        return [e for e in self._events if e.entity_type == entity_type]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self._events[-limit:]))

    def export_rows(self) -> list[list[str]]:
        """
        Flatten the log into a header row plus one row per event,
        ready for a spreadsheet or CSV export.
        """
        return [list(AUDIT_COLUMNS)] + [event.to_row() for event in self._events]
