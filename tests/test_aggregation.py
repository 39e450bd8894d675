"""Tests for the monthly aggregation."""

import datetime as dt
from decimal import Decimal

import pytest

from expense_tracker.aggregation import aggregate_month, month_start
from tests.conftest import make_tx


NOW = dt.datetime(2025, 3, 15, 10, 30)
FIRST_OF_MONTH = dt.date(2025, 3, 1)
SECOND_OF_MONTH = dt.date(2025, 3, 2)
FIRST_OF_PREVIOUS_MONTH = dt.date(2025, 2, 1)
LAST_OF_PREVIOUS_MONTH = dt.date(2025, 2, 28)
FIRST_OF_NEXT_MONTH = dt.date(2025, 4, 1)


MIXED = [
    make_tx("100", "income", "Salary", FIRST_OF_MONTH),
    make_tx("50", "expense", "Food", FIRST_OF_MONTH),
    make_tx("20.25", "expense", "Food", SECOND_OF_MONTH),
    make_tx("30", "income", "Gift", dt.date(2025, 3, 31)),
    make_tx("30", "expense", "Gift", dt.date(2025, 3, 20)),
    make_tx("999", "expense", "Housing", LAST_OF_PREVIOUS_MONTH),
    make_tx("5", "income", "Other", FIRST_OF_NEXT_MONTH),
]


class TestMonthBoundaries:
    """Tests for the month helpers."""

    def test_month_start_from_datetime(self):
        assert month_start(NOW) == FIRST_OF_MONTH

    def test_month_start_from_date(self):
        assert month_start(dt.date(2025, 3, 31)) == FIRST_OF_MONTH


class TestAggregateMonth:
    """Tests for aggregate_month."""

    def test_empty_input(self):
        """No transactions gives zeros and no categories."""
        summary = aggregate_month([], NOW)
        assert summary.income == 0
        assert summary.expense == 0
        assert summary.net == 0
        assert summary.by_category == {}
        assert summary.month_start == FIRST_OF_MONTH

    def test_single_income(self):
        """One salary on the first of the month."""
        txs = [make_tx("100", "income", "Salary", FIRST_OF_MONTH)]
        summary = aggregate_month(txs, NOW)
        assert summary.income == Decimal("100")
        assert summary.expense == Decimal("0")
        assert summary.net == Decimal("100")
        assert summary.by_category == {"Salary": Decimal("100")}

    def test_expenses_in_same_category_accumulate(self):
        """Two food expenses net to -70."""
        txs = [
            make_tx("50", "expense", "Food", FIRST_OF_MONTH),
            make_tx("20", "expense", "Food", SECOND_OF_MONTH),
        ]
        summary = aggregate_month(txs, NOW)
        assert summary.by_category == {"Food": Decimal("-70")}
        assert summary.expense == Decimal("70")
        assert summary.income == Decimal("0")
        assert summary.net == Decimal("-70")

    def test_previous_month_only(self):
        """Only a prior-month record: everything is zero."""
        txs = [make_tx("40", "expense", "Food", FIRST_OF_PREVIOUS_MONTH)]
        summary = aggregate_month(txs, NOW)
        assert summary.income == 0
        assert summary.expense == 0
        assert summary.net == 0
        assert summary.by_category == {}

    def test_first_of_previous_month_never_counts(self):
        txs = [
            make_tx("40", "expense", "Food", FIRST_OF_PREVIOUS_MONTH),
            make_tx("10", "expense", "Transport", FIRST_OF_MONTH),
        ]
        summary = aggregate_month(txs, NOW)
        assert "Food" not in summary.by_category
        assert summary.expense == Decimal("10")

    def test_first_of_current_month_always_counts(self):
        txs = [make_tx("10", "expense", "Transport", FIRST_OF_MONTH)]
        summary = aggregate_month(txs, FIRST_OF_MONTH)
        assert summary.by_category == {"Transport": Decimal("-10")}

    def test_future_date_in_month_counts(self):
        """A record dated later this month is still this month."""
        txs = [make_tx("10", "income", "Freelance", dt.date(2025, 3, 31))]
        summary = aggregate_month(txs, NOW)
        assert summary.income == Decimal("10")

    def test_later_month_still_counts(self):
        """Only the lower bound is applied; a record dated next month counts."""
        txs = [make_tx("5", "income", "Other", FIRST_OF_NEXT_MONTH)]
        summary = aggregate_month(txs, NOW)
        assert summary.income == Decimal("5")
        assert summary.by_category == {"Other": Decimal("5")}

    def test_zero_net_category_is_omitted(self):
        """Income and expense cancelling out leave no entry."""
        txs = [
            make_tx("30", "income", "Gift", FIRST_OF_MONTH),
            make_tx("30", "expense", "Gift", SECOND_OF_MONTH),
        ]
        summary = aggregate_month(txs, NOW)
        assert summary.by_category == {}
        assert summary.income == Decimal("30")
        assert summary.expense == Decimal("30")

    def test_decimal_amounts_are_exact(self):
        txs = [
            make_tx("0.10", "expense", "Food", FIRST_OF_MONTH),
            make_tx("0.20", "expense", "Food", FIRST_OF_MONTH, tx_id="second"),
        ]
        summary = aggregate_month(txs, NOW)
        assert summary.expense == Decimal("0.30")

    def test_category_outside_enumeration_is_aggregated(self):
        """Categories are not re-checked on read."""
        txs = [make_tx("12", "expense", "Legacy Stuff", FIRST_OF_MONTH)]
        summary = aggregate_month(txs, NOW)
        assert summary.by_category == {"Legacy Stuff": Decimal("-12")}

    def test_mixed_month(self):
        summary = aggregate_month(MIXED, NOW)
        assert summary.income == Decimal("135")
        assert summary.expense == Decimal("100.25")
        assert summary.net == Decimal("34.75")
        assert summary.by_category == {
            "Salary": Decimal("100"),
            "Food": Decimal("-70.25"),
            "Other": Decimal("5"),
        }


class TestAggregateProperties:
    """Invariants that hold for any input."""

    @pytest.mark.parametrize("count", [0, 1, 3, len(MIXED)])
    def test_net_is_income_minus_expense(self, count):
        summary = aggregate_month(MIXED[:count], NOW)
        assert summary.net == summary.income - summary.expense

    @pytest.mark.parametrize("count", [0, 1, 3, len(MIXED)])
    def test_totals_are_non_negative(self, count):
        summary = aggregate_month(MIXED[:count], NOW)
        assert summary.income >= 0
        assert summary.expense >= 0

    @pytest.mark.parametrize("now", [NOW, FIRST_OF_PREVIOUS_MONTH, FIRST_OF_NEXT_MONTH])
    def test_no_zero_entries(self, now):
        summary = aggregate_month(MIXED, now)
        assert all(value != 0 for value in summary.by_category.values())

    def test_idempotent(self):
        """Same inputs, same summary."""
        assert aggregate_month(MIXED, NOW) == aggregate_month(MIXED, NOW)

    def test_input_order_does_not_matter(self):
        assert aggregate_month(MIXED, NOW) == aggregate_month(list(reversed(MIXED)), NOW)

    def test_input_is_not_modified(self):
        txs = list(MIXED)
        aggregate_month(txs, NOW)
        assert txs == MIXED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
