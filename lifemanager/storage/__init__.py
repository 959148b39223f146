"""
Storage Package

Provides the abstract audit sink and an in-memory implementation.
Apps plug their own backend in by implementing AuditStorageInterface.
"""

from lifemanager.storage.interface import (
    AuditStorageInterface,
    StorageError,
    StorageFullError,
)
from lifemanager.storage.memory import AUDIT_COLUMNS, InMemoryAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    # Exceptions
    "StorageError",
    "StorageFullError",
    # In-memory implementation
    "AUDIT_COLUMNS",
    "InMemoryAuditStorage",
]
