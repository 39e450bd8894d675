"""Presentation helpers: formatting and charts."""

from expense_tracker.views.charts import (
    category_color,
    category_colors,
    category_net_bar,
    income_expense_pie,
)
from expense_tracker.views.formatting import (
    badge_html,
    format_display_date,
    format_money,
    format_signed_amount,
    transaction_rows,
)

__all__ = [
    "badge_html",
    "category_color",
    "category_colors",
    "category_net_bar",
    "income_expense_pie",
    "format_display_date",
    "format_money",
    "format_signed_amount",
    "transaction_rows",
]
