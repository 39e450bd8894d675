"""
In-Memory Storage Implementation

Used for local development (STORAGE_BACKEND=memory) and tests.
Subscribers are called synchronously, inside add_transaction, with the
user's full sorted list.
"""

import threading
from collections import defaultdict
from datetime import datetime, timezone
from uuid import uuid4

from expense_tracker.models import NewTransaction, Transaction
from expense_tracker.models.audit import AuditEvent
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    SnapshotCallback,
    TransactionStoreInterface,
    sort_snapshot,
)
from expense_tracker.services.streams import Broadcaster, Subscription


class InMemoryTransactionStore(TransactionStoreInterface):
    """Process-local transaction store, one list per uid."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[str, list[Transaction]] = defaultdict(list)
        self._channels: dict[str, Broadcaster[tuple[Transaction, ...]]] = defaultdict(Broadcaster)

    def snapshot(self, uid: str) -> tuple[Transaction, ...]:
        with self._lock:
            return sort_snapshot(self._records[uid])

    async def add_transaction(self, uid: str, new_tx: NewTransaction) -> str:
        """Store the record and push the new snapshot to the user's subscribers."""
        record = Transaction(
            id=uuid4().hex,
            created_at=datetime.now(timezone.utc),
            **new_tx.model_dump(mode="json"),
        )
        with self._lock:
            self._records[uid].append(record)
            channel = self._channels[uid]
        channel.publish(self.snapshot(uid))
        return record.id

    def subscribe(self, uid: str, callback: SnapshotCallback) -> Subscription:
        with self._lock:
            channel = self._channels[uid]
        subscription = channel.add(callback)
        callback(self.snapshot(uid))
        return subscription


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit list kept in process memory."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> tuple[AuditEvent, ...]:
        """Everything appended so far, oldest first."""
        return tuple(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

