"""
Abstract Storage Interface

DESIGN DECISION: The core never owns a persistence engine. The only thing
it writes is the audit trail, and it writes it through this interface.
This allows us to:
1. Plug in whatever database the app already uses
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation
"""

from abc import ABC, abstractmethod
from uuid import UUID

from lifemanager.models.audit import AuditEvent


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully

        Raises:
            StorageError: If the backend rejects the write
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one payment capture).

        Args:
            correlation_id: The correlation identifier

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity_type(
        self,
        entity_type: str,
    ) -> list[AuditEvent]:
        """
        Get all events about one kind of entity.

        Args:
            entity_type: Type of entity (e.g., 'payment', 'savings_plan')

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageFullError(StorageError):
    """The backend cannot take more events."""
    pass
