"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the managed backend; the in-memory store backs local
development and tests.
"""

from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    SnapshotCallback,
    StorageError,
    TransactionStoreInterface,
    parse_record,
    sort_snapshot,
)
from expense_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryTransactionStore,
)
from expense_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SnapshotCallback",
    "TransactionStoreInterface",
    # Helpers
    "parse_record",
    "sort_snapshot",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryTransactionStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStore",
]
