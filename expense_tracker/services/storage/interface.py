"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Use Google Sheets today and a managed document store later
2. Use in-memory storage for tests and local development
3. Keep the dashboard decoupled from how records are persisted

The transaction interface is deliberately tiny: append, and a live
subscription that delivers the whole ordered list on every change.
There is no update and no delete.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional

import structlog
from pydantic import ValidationError

from expense_tracker.models import NewTransaction, Transaction
from expense_tracker.models.audit import AuditEvent
from expense_tracker.services.streams import Subscription


logger = structlog.get_logger(__name__)

# Callback signature for live subscriptions: full list, newest date first.
SnapshotCallback = Callable[[Sequence[Transaction]], None]


class TransactionStoreInterface(ABC):
    """
    Abstract interface for the per-user transaction collection.

    Records are keyed by the signed-in identity's uid.
    """

    @abstractmethod
    async def add_transaction(self, uid: str, new_tx: NewTransaction) -> str:
        """
        Append a new transaction to the user's collection.

        The store assigns the id and the created_at timestamp.

        Args:
            uid: Identity the record belongs to
            new_tx: Validated candidate record

        Returns:
            The id of the stored record, once the store accepted it

        Raises:
            StorageError: If the append fails
        """
        pass

    @abstractmethod
    def subscribe(self, uid: str, callback: SnapshotCallback) -> Subscription:
        """
        Listen to the user's collection.

        The callback receives the complete list sorted by date
        descending: once with the current contents, then on every
        change. Never a diff.

        Args:
            uid: Identity whose collection to watch
            callback: Receives each snapshot

        Returns:
            Handle to cancel the subscription
        """
        pass

    def close(self) -> None:
        """Release background resources (pollers, connections)."""


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass


def sort_snapshot(transactions: Sequence[Transaction]) -> tuple[Transaction, ...]:
    """Order records the way subscribers see them: newest date first."""
    return tuple(sorted(transactions, key=lambda tx: tx.date, reverse=True))


def parse_record(record_id: str, data: Mapping[str, Any]) -> Optional[Transaction]:
    """
    Turn a raw stored record into a Transaction.

    This is where data coming back from a backend enters the typed
    world. Records with an unknown type, a non-positive amount or a
    malformed date are dropped and logged rather than guessed at.
    """
    try:
        return Transaction(**{**data, "id": record_id})
    except ValidationError as e:
        logger.warning(
            "store_record_rejected",
            record_id=record_id,
            errors=[
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
        )
        return None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
