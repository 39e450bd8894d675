"""
Dashboard Session

This module ties the components together for one browser session:

    identity stream -> gates the store subscription
    store subscription -> replaces the snapshot
    snapshot + now -> MonthlySummary (recomputed on every read)

DESIGN DECISION: The session is the only writer of the snapshot, and it
only ever rebinds it to a new immutable tuple. Readers (the page) never
need a lock and never see a half-updated list.
"""

import asyncio
import datetime as dt
from collections.abc import Sequence
from typing import Optional, Union

import structlog

from expense_tracker.aggregation import aggregate_month
from expense_tracker.audit import AuditLogger
from expense_tracker.config import AppSettings, IdentityBackend, StorageBackend, get_settings
from expense_tracker.forms import TransactionFormController
from expense_tracker.models import Identity, MonthlySummary, Transaction
from expense_tracker.services.identity import (
    IdentityProviderInterface,
    LocalIdentityProvider,
    StreamlitIdentityProvider,
)
from expense_tracker.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
    InMemoryTransactionStore,
    TransactionStoreInterface,
)
from expense_tracker.services.streams import Subscription


logger = structlog.get_logger(__name__)


def run_async(coro):
    """Run a coroutine from sync code, or schedule it if a loop is already running."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    return loop.create_task(coro)


class DashboardSession:
    """
    Component-local state for one dashboard.

    Flow:
    1. start() subscribes to the identity provider
    2. An identity arrives -> subscribe to that user's transactions
    3. Each snapshot replaces the previous one wholesale
    4. Identity goes away -> cancel the subscription, drop the snapshot
    """

    def __init__(
        self,
        identity_provider: IdentityProviderInterface,
        store: TransactionStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._identity_provider = identity_provider
        self._store = store
        self._audit_logger = audit_logger
        self._identity: Optional[Identity] = None
        self._transactions: tuple[Transaction, ...] = ()
        self._identity_subscription: Optional[Subscription] = None
        self._store_subscription: Optional[Subscription] = None

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def is_signed_in(self) -> bool:
        return self._identity is not None

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        """Latest snapshot, newest date first."""
        return self._transactions

    @property
    def is_started(self) -> bool:
        return self._identity_subscription is not None

    def start(self) -> None:
        """
        Begin listening for identity changes. Safe to call more than once,
        including after a failed first attempt.
        """
        if self._identity_subscription is None:
            self._identity_subscription = self._identity_provider.subscribe(
                self._on_identity
            )

    def close(self) -> None:
        """Tear down both subscriptions."""
        if self._identity_subscription is not None:
            self._identity_subscription.cancel()
            self._identity_subscription = None
        self._cancel_store_subscription()
        self._transactions = ()

    def sign_in(self) -> None:
        self._identity_provider.sign_in()

    def sign_out(self) -> None:
        self._identity_provider.sign_out()

    def sync(self) -> None:
        """
        Re-apply the provider's current identity.

        Called on every page run, so a sign-in whose store subscription
        failed is retried instead of staying half-applied.
        """
        self._on_identity(self._identity_provider.current())

    def summary(self, now: Optional[Union[dt.date, dt.datetime]] = None) -> MonthlySummary:
        """Current-month summary of the latest snapshot."""
        return aggregate_month(self._transactions, now or dt.datetime.now())

    def _on_identity(self, identity: Optional[Identity]) -> None:
        if identity == self._identity:
            return

        previous = self._identity
        if previous is not None:
            self._cancel_store_subscription()
            self._identity = None
            logger.info("signed_out", uid=previous.uid)
            self._audit("log_signed_out", previous.uid)
        self._transactions = ()

        if identity is None:
            return

        # Identity is committed only once the store accepted the subscription
        try:
            subscription = self._store.subscribe(identity.uid, self._on_snapshot)
        except Exception as e:
            self._transactions = ()
            logger.error("subscription_failed", uid=identity.uid, error=str(e))
            raise

        self._identity = identity
        self._store_subscription = subscription
        logger.info("signed_in", uid=identity.uid)
        self._audit("log_signed_in", identity.uid)
        self._audit("log_subscription_started", identity.uid)

    def _on_snapshot(self, transactions: Sequence[Transaction]) -> None:
        self._transactions = tuple(transactions)
        logger.debug("snapshot_received", count=len(self._transactions))

    def _cancel_store_subscription(self) -> None:
        if self._store_subscription is not None:
            self._store_subscription.cancel()
            self._store_subscription = None
            if self._identity is not None:
                self._audit("log_subscription_cancelled", self._identity.uid)

    def _audit(self, method: str, *args) -> None:
        if self._audit_logger is not None:
            run_async(getattr(self._audit_logger, method)(*args))


def create_identity_provider(settings: AppSettings) -> IdentityProviderInterface:
    """Identity provider for the configured backend."""
    if settings.identity_backend == IdentityBackend.STREAMLIT:
        return StreamlitIdentityProvider()
    return LocalIdentityProvider(
        Identity(
            uid=settings.local_user_id,
            display_name=settings.local_user_name or None,
            email=settings.local_user_email or None,
        )
    )


def create_app_components(
    settings: Optional[AppSettings] = None,
) -> tuple[TransactionStoreInterface, AuditLogger]:
    """
    Factory for the process-wide components.

    Falls back to in-memory storage and local-only audit logging when
    Google Sheets is selected but not configured.

    Returns:
        (transaction_store, audit_logger)
    """
    settings = settings or get_settings().app

    if settings.storage_backend == StorageBackend.GOOGLE_SHEETS:
        try:
            sheets_client = GoogleSheetsClient()
            store = GoogleSheetsTransactionStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
            return store, audit_logger
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))

    return InMemoryTransactionStore(), AuditLogger()


def create_session(
    store: TransactionStoreInterface,
    identity_provider: IdentityProviderInterface,
    audit_logger: Optional[AuditLogger] = None,
) -> tuple[DashboardSession, TransactionFormController]:
    """A started session plus its form controller, sharing one store."""
    session = DashboardSession(
        identity_provider=identity_provider,
        store=store,
        audit_logger=audit_logger,
    )
    session.start()
    form = TransactionFormController(store=store, audit_logger=audit_logger)
    return session, form
