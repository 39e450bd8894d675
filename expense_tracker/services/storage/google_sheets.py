"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the managed backend because:
1. Users can open their data directly in Sheets
2. No database to run or migrate
3. Access control and backups come from Google

TRADEOFFS:
- Sheets has no change feed, so live subscriptions poll the worksheet
  and push a new snapshot only when the contents changed
- No transactions (appends are single-row and idempotent enough for us)

Each signed-in user gets their own worksheet, named
<transactions_sheet_prefix><uid>, so the collection path is
identity -> transactions.
"""

import re
import threading
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from expense_tracker.config import GoogleSheetsSettings, get_settings
from expense_tracker.models import NewTransaction, Transaction
from expense_tracker.models.audit import AuditEvent
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    SnapshotCallback,
    StorageError,
    TransactionStoreInterface,
    parse_record,
    sort_snapshot,
)
from expense_tracker.services.streams import Subscription, callback_ref


logger = structlog.get_logger(__name__)


# Column mappings for per-user transaction sheets
TRANSACTION_COLUMNS = [
    "id",
    "amount",
    "type",
    "category",
    "date",
    "note",
    "created_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

# Characters Google Sheets does not allow in worksheet titles
_INVALID_TITLE_CHARS = re.compile(r"[\[\]:*?/\\']")


def worksheet_title(prefix: str, uid: str) -> str:
    """Worksheet title holding one user's transactions."""
    return (prefix + _INVALID_TITLE_CHARS.sub("_", uid))[:100]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(
        self,
        settings: Optional[GoogleSheetsSettings] = None,
        client: Optional[gspread.Client] = None,
    ):
        self._client = client
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets
        self._sheets: dict[str, gspread.Worksheet] = {}
        self._lock = threading.Lock()

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        with self._lock:
            if title in self._sheets:
                return self._sheets[title]
            spreadsheet = self.get_spreadsheet()
            try:
                sheet = spreadsheet.worksheet(title)
            except gspread.WorksheetNotFound:
                # Create the sheet with headers
                sheet = spreadsheet.add_worksheet(
                    title=title,
                    rows=rows,
                    cols=len(columns),
                )
                sheet.append_row(columns)
            self._sheets[title] = sheet
            return sheet

    def get_transactions_sheet(self, uid: str) -> gspread.Worksheet:
        """Get or create the worksheet for one user's transactions."""
        title = worksheet_title(self._settings.transactions_sheet_prefix, uid)
        return self._get_or_create_sheet(title, TRANSACTION_COLUMNS, rows=1000)

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class _SheetPoller:
    """
    Background poller behind one live subscription.

    Re-reads the user's worksheet every poll interval (or sooner when
    poked after a local append) and calls back only when the parsed
    snapshot differs from the last one delivered. The subscriber is held
    through callback_ref; once it has been garbage collected the poller
    stops itself and reports back through on_orphaned.
    """

    def __init__(
        self,
        uid: str,
        fetch,
        callback: SnapshotCallback,
        interval: float,
        initial: tuple[Transaction, ...],
        on_orphaned=None,
    ):
        self.uid = uid
        self._fetch = fetch
        self._callback_ref = callback_ref(callback)
        self._on_orphaned = on_orphaned
        self._interval = interval
        self._last = initial
        self._stop = threading.Event()
        self._wake = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=f"sheets-poller-{uid}",
            daemon=True,
        )

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        self._thread.start()

    def poke(self) -> None:
        self._wake.set()

    def stop(self) -> None:
        self._stop.set()
        self._wake.set()

    def check_orphaned(self) -> bool:
        """Stop if the subscriber is gone. Returns True when it was."""
        if self._callback_ref() is not None:
            return False
        logger.info("subscription_orphaned", uid=self.uid)
        self.stop()
        if self._on_orphaned is not None:
            self._on_orphaned(self)
        return True

    def poll_once(self) -> bool:
        """Fetch and deliver if changed. Returns True when a snapshot was pushed."""
        if self.check_orphaned():
            return False
        try:
            snapshot = self._fetch(self.uid)
        except Exception as e:
            # Keep the previous snapshot; try again next tick
            logger.error("subscription_poll_failed", uid=self.uid, error=str(e))
            return False
        if snapshot == self._last or self._stop.is_set():
            return False
        callback = self._callback_ref()
        if callback is None:
            self.check_orphaned()
            return False
        self._last = snapshot
        callback(snapshot)
        return True

    def _run(self) -> None:
        while not self._stop.is_set():
            self._wake.wait(self._interval)
            self._wake.clear()
            if self._stop.is_set():
                break
            self.poll_once()


class GoogleSheetsTransactionStore(TransactionStoreInterface):
    """
    Google Sheets implementation of the transaction store.

    Transactions are stored as rows, one worksheet per user.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        poll_interval: Optional[float] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._poll_interval = poll_interval or self._client.settings.poll_interval_seconds
        self._pollers: set[_SheetPoller] = set()
        self._lock = threading.Lock()

    @property
    def subscription_count(self) -> int:
        """Live pollers still attached to a subscriber."""
        with self._lock:
            return len(self._pollers)

    def _transaction_to_row(self, tx: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            tx.id,
            str(tx.amount),
            tx.type.value,
            tx.category,
            tx.date.isoformat(),
            tx.note or "",
            tx.created_at.isoformat() if tx.created_at else "",
        ]

    def _row_to_transaction(self, row: list) -> Optional[Transaction]:
        """Convert a spreadsheet row to a Transaction, or None if malformed."""
        # Handle missing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        data: dict[str, Any] = {
            "amount": safe_get(1),
            "type": safe_get(2),
            "category": safe_get(3),
            "date": safe_get(4),
            "note": safe_get(5) or None,
            "created_at": safe_get(6) or None,
        }
        return parse_record(safe_get(0), data)

    def fetch_snapshot(self, uid: str) -> tuple[Transaction, ...]:
        """
        Read the user's worksheet and return the sorted snapshot.

        A retried append can leave the same id on two rows; only the
        first one is kept.
        """
        try:
            sheet = self._client.get_transactions_sheet(uid)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read transactions: {e}")

        transactions = []
        seen: set[str] = set()
        for row in all_rows:
            if not row or not row[0] or row[0] in seen:  # Skip empty and repeated rows
                continue
            tx = self._row_to_transaction(row)
            if tx is not None:
                seen.add(tx.id)
                transactions.append(tx)
        return sort_snapshot(transactions)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_row(self, uid: str, row: list) -> None:
        sheet = self._client.get_transactions_sheet(uid)
        sheet.append_row(row, value_input_option="RAW")

    async def add_transaction(self, uid: str, new_tx: NewTransaction) -> str:
        """
        Append a transaction row to the user's worksheet.

        The id is fixed before the first attempt, so every retry writes
        the same record.
        """
        record = Transaction(
            id=uuid4().hex,
            created_at=datetime.now(timezone.utc),
            **new_tx.model_dump(mode="json"),
        )
        try:
            self._append_row(uid, self._transaction_to_row(record))
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

        with self._lock:
            pollers = [p for p in self._pollers if p.uid == uid]
        for poller in pollers:
            poller.poke()
        return record.id

    def subscribe(self, uid: str, callback: SnapshotCallback) -> Subscription:
        """Deliver the current snapshot now, then poll for changes."""
        self.prune_orphaned()
        initial = self.fetch_snapshot(uid)
        poller = _SheetPoller(
            uid=uid,
            fetch=self.fetch_snapshot,
            callback=callback,
            interval=self._poll_interval,
            initial=initial,
            on_orphaned=self._discard_poller,
        )
        with self._lock:
            self._pollers.add(poller)
        callback(initial)
        poller.start()

        def _cancel() -> None:
            poller.stop()
            self._discard_poller(poller)

        return Subscription(_cancel)

    def _discard_poller(self, poller: _SheetPoller) -> None:
        with self._lock:
            self._pollers.discard(poller)

    def prune_orphaned(self) -> int:
        """Stop pollers whose subscriber was discarded. Returns how many."""
        with self._lock:
            pollers = list(self._pollers)
        return sum(1 for poller in pollers if poller.check_orphaned())

    def close(self) -> None:
        with self._lock:
            pollers, self._pollers = self._pollers, set()
        for poller in pollers:
            poller.stop()


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_append_failed", error=str(e), event_id=str(event.event_id))
            return False
