"""Tests for formatting helpers and chart builders."""

import datetime as dt
from decimal import Decimal

import pytest

from expense_tracker.models import Category, MonthlySummary
from expense_tracker.views import (
    badge_html,
    category_color,
    category_net_bar,
    format_display_date,
    format_money,
    format_signed_amount,
    income_expense_pie,
    transaction_rows,
)
from expense_tracker.views.charts import EXPENSE_COLOR, INCOME_COLOR, UNKNOWN_CATEGORY_COLOR
from tests.conftest import make_tx


MARCH = dt.date(2025, 3, 1)


class TestFormatting:
    """Tests for text formatting."""

    @pytest.mark.parametrize("amount,expected", [
        (Decimal("1234.5"), "$1,234.50"),
        (Decimal("0"), "$0.00"),
        (Decimal("-70"), "-$70.00"),
        (Decimal("0.005"), "$0.01"),
        (12, "$12.00"),
    ])
    def test_format_money(self, amount, expected):
        assert format_money(amount) == expected

    def test_format_money_symbol(self):
        assert format_money(Decimal("3"), symbol="€") == "€3.00"

    def test_signed_amount(self):
        assert format_signed_amount(make_tx("12", "income", "Gift", MARCH)) == "+$12.00"
        assert format_signed_amount(make_tx("12", "expense", "Food", MARCH)) == "-$12.00"

    def test_display_date(self):
        assert format_display_date(dt.date(2025, 3, 5)) == "Mar 5, 2025"

    def test_transaction_rows_keep_order(self):
        txs = [
            make_tx("5", "income", "Gift", dt.date(2025, 3, 9), note="birthday"),
            make_tx("2.5", "expense", "Food", MARCH),
        ]
        rows = transaction_rows(txs)
        assert rows == [
            {
                "Date": "Mar 9, 2025",
                "Type": "income",
                "Category": "Gift",
                "Note": "birthday",
                "Amount": "+$5.00",
            },
            {
                "Date": "Mar 1, 2025",
                "Type": "expense",
                "Category": "Food",
                "Note": "-",
                "Amount": "-$2.50",
            },
        ]

    def test_badge_escapes_display_name(self):
        badge = badge_html("Logged in as <script>alert(1)</script> & co")
        assert "<script>" not in badge
        assert "&lt;script&gt;alert(1)&lt;/script&gt; &amp; co" in badge
        assert badge.startswith('<span class="badge">')


class TestCharts:
    """Tests for the plotly figures."""

    def test_category_colors_are_stable(self):
        assert category_color("Food") == category_color(Category.FOOD.value)
        assert category_color("Food") != category_color("Transport")
        assert category_color("Legacy Stuff") == UNKNOWN_CATEGORY_COLOR

    def test_bar_for_empty_month(self):
        fig = category_net_bar(MonthlySummary(month_start=MARCH))
        assert len(fig.data) == 0
        assert fig.layout.annotations[0].text == "Add a few transactions to see charts."

    def test_bar_values_are_signed(self):
        summary = MonthlySummary(
            month_start=MARCH,
            income=Decimal("100"),
            expense=Decimal("70"),
            by_category={"Salary": Decimal("100"), "Food": Decimal("-70")},
        )
        fig = category_net_bar(summary)
        (bar,) = fig.data
        assert list(bar.x) == ["Salary", "Food"]
        assert list(bar.y) == [100.0, -70.0]
        assert fig.layout.title.text == "Net by Category (this month)"

    def test_pie_for_empty_month(self):
        fig = income_expense_pie(MonthlySummary(month_start=MARCH))
        assert len(fig.data) == 0

    def test_pie_split(self):
        summary = MonthlySummary(
            month_start=MARCH,
            income=Decimal("30"),
            expense=Decimal("30"),
        )
        (pie,) = income_expense_pie(summary).data
        assert list(pie.labels) == ["Income", "Expense"]
        assert list(pie.values) == [30.0, 30.0]
        assert list(pie.marker.colors) == [INCOME_COLOR, EXPENSE_COLOR]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
