"""
Monthly Aggregation

Turns the latest transaction snapshot into the numbers on the dashboard:
income, expense, net and a signed net per category from the start of
the current calendar month onwards.

This is a pure function of (transactions, now). No I/O, no caching,
no clock reads: callers pass "now" in, so the result follows the
wall-clock month simply by being recomputed on every render.
"""

import datetime as dt
from collections.abc import Iterable
from decimal import Decimal
from typing import Union

from expense_tracker.models import MonthlySummary, Transaction


def month_start(now: Union[dt.date, dt.datetime]) -> dt.date:
    """First calendar day of the month containing ``now``."""
    if isinstance(now, dt.datetime):
        now = now.date()
    return now.replace(day=1)


def aggregate_month(
    transactions: Iterable[Transaction],
    now: Union[dt.date, dt.datetime],
) -> MonthlySummary:
    """
    Summarise every record dated on or after the first of ``now``'s month.

    There is no upper bound: a record dated in a later month still
    counts toward "this month". Income adds to its category and expense
    subtracts from it. Categories whose net ends at zero are left out
    of ``by_category``.
    """
    start = month_start(now)

    income = Decimal("0")
    expense = Decimal("0")
    by_category: dict[str, Decimal] = {}

    for tx in transactions:
        if tx.date < start:
            continue
        if tx.is_income:
            income += tx.amount
        else:
            expense += tx.amount
        by_category[tx.category] = by_category.get(tx.category, Decimal("0")) + tx.signed_amount

    return MonthlySummary(
        month_start=start,
        income=income,
        expense=expense,
        by_category={
            category: net for category, net in by_category.items() if net != 0
        },
    )
