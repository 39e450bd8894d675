"""Text formatting for the dashboard: money, signed amounts, dates, table rows."""

import datetime as dt
import html
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from expense_tracker.models import Transaction

_CENT = Decimal("0.01")


def format_money(amount: Union[Decimal, int, float], symbol: str = "$") -> str:
    """Two decimals with thousands separators; the minus goes before the symbol."""
    value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_signed_amount(tx: Transaction, symbol: str = "$") -> str:
    """'+$12.00' for income, '-$12.00' for expense."""
    sign = "+" if tx.is_income else "-"
    return f"{sign}{format_money(tx.amount, symbol)}"


def format_display_date(day: dt.date) -> str:
    """'Mar 5, 2025'."""
    return f"{day:%b} {day.day}, {day.year}"


def transaction_rows(
    transactions: Iterable[Transaction],
    symbol: str = "$",
) -> list[dict[str, str]]:
    """Rows for the 'All Transactions' table, in snapshot order."""
    return [
        {
            "Date": format_display_date(tx.date),
            "Type": tx.type.value,
            "Category": tx.category,
            "Note": tx.note or "-",
            "Amount": format_signed_amount(tx, symbol),
        }
        for tx in transactions
    ]


def badge_html(text: str) -> str:
    """A header badge; the text is escaped before it reaches unsafe_allow_html."""
    return f'<span class="badge">{html.escape(text)}</span>'
