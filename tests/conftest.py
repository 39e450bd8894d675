"""
Shared fixtures.

No test talks to Google: the Sheets backend runs against the small
in-process fakes below, which mimic the parts of gspread we call.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

import gspread
import pytest

from expense_tracker.config import GoogleSheetsSettings, get_settings
from expense_tracker.models import Identity, Transaction, TransactionType


class FakeWorksheet:
    def __init__(self, title: str):
        self.title = title
        self.rows: list[list[str]] = []
        self.fail_reads = False

    def append_row(self, values, value_input_option=None):
        self.rows.append([str(v) for v in values])

    def get_all_values(self):
        if self.fail_reads:
            raise RuntimeError("quota exceeded")
        return [list(row) for row in self.rows]


class FakeSpreadsheet:
    def __init__(self):
        self.worksheets: dict[str, FakeWorksheet] = {}

    def worksheet(self, title: str) -> FakeWorksheet:
        try:
            return self.worksheets[title]
        except KeyError:
            raise gspread.WorksheetNotFound(title)

    def add_worksheet(self, title: str, rows: int, cols: int) -> FakeWorksheet:
        sheet = FakeWorksheet(title)
        self.worksheets[title] = sheet
        return sheet


class FakeGspreadClient:
    def __init__(self):
        self.spreadsheet = FakeSpreadsheet()
        self.opened: list[str] = []

    def open_by_key(self, key: str) -> FakeSpreadsheet:
        self.opened.append(key)
        return self.spreadsheet


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sheets_settings(tmp_path) -> GoogleSheetsSettings:
    credentials = tmp_path / "service-account.json"
    credentials.write_text("{}")
    return GoogleSheetsSettings(
        credentials_path=str(credentials),
        spreadsheet_id="test-spreadsheet",
        poll_interval_seconds=60,
    )


@pytest.fixture
def fake_gspread() -> FakeGspreadClient:
    return FakeGspreadClient()


@pytest.fixture
def user() -> Identity:
    return Identity(uid="user-1", display_name="Ada", email="ada@example.com")


def make_tx(
    amount: str,
    tx_type: str,
    category: str,
    day: dt.date,
    note: Optional[str] = None,
    tx_id: Optional[str] = None,
) -> Transaction:
    return Transaction(
        id=tx_id or f"{category}-{day.isoformat()}-{amount}",
        amount=Decimal(amount),
        type=TransactionType(tx_type),
        category=category,
        date=day,
        note=note,
    )
