"""Services package."""

from expense_tracker.services.identity import (
    IdentityProviderInterface,
    LocalIdentityProvider,
    StreamlitIdentityProvider,
)
from expense_tracker.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
    InMemoryAuditStorage,
    InMemoryTransactionStore,
    StorageError,
    TransactionStoreInterface,
)
from expense_tracker.services.streams import Broadcaster, Subscription

__all__ = [
    # Identity services
    "IdentityProviderInterface",
    "LocalIdentityProvider",
    "StreamlitIdentityProvider",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStore",
    "InMemoryAuditStorage",
    "InMemoryTransactionStore",
    "StorageError",
    "TransactionStoreInterface",
    # Streams
    "Broadcaster",
    "Subscription",
]
