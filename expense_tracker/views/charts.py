"""Plotly figures for the monthly breakdown card."""

from collections.abc import Iterable

import plotly.express as px
import plotly.graph_objects as go

from expense_tracker.models import Category, MonthlySummary

INCOME_COLOR = "rgba(48,209,88,0.7)"
EXPENSE_COLOR = "rgba(255,92,122,0.7)"
UNKNOWN_CATEGORY_COLOR = "#9e9e9e"

_PALETTE = px.colors.qualitative.Plotly
_CATEGORY_ORDER = [c.value for c in Category]


def category_color(label: str) -> str:
    """Colour for a category label, by its position in the enumeration."""
    try:
        index = _CATEGORY_ORDER.index(label)
    except ValueError:
        return UNKNOWN_CATEGORY_COLOR
    return _PALETTE[index % len(_PALETTE)]


def category_colors(labels: Iterable[str]) -> list[str]:
    return [category_color(label) for label in labels]


def _empty_figure(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        showarrow=False,
        x=0.5,
        y=0.5,
        xref="paper",
        yref="paper",
        font=dict(size=14, color="#6c757d"),
    )
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    fig.update_layout(margin=dict(l=0, r=0, t=20, b=20))
    return fig


def category_net_bar(summary: MonthlySummary) -> go.Figure:
    """Bar per category, signed: income up, expense down."""
    if not summary.by_category:
        return _empty_figure("Add a few transactions to see charts.")

    labels = list(summary.by_category)
    values = [float(v) for v in summary.by_category.values()]

    fig = go.Figure()
    fig.add_bar(
        name="Net by Category (this month)",
        x=labels,
        y=values,
        marker_color=category_colors(labels),
    )
    fig.update_layout(
        title="Net by Category (this month)",
        xaxis_title="Category",
        yaxis_title="Net",
        margin=dict(l=0, r=0, t=40, b=0),
        showlegend=False,
    )
    return fig


def income_expense_pie(summary: MonthlySummary) -> go.Figure:
    """Income vs. expense split for the month."""
    if not summary.has_activity:
        return _empty_figure("No income or expense this month.")

    fig = go.Figure(
        go.Pie(
            labels=["Income", "Expense"],
            values=[float(summary.income), float(summary.expense)],
            marker=dict(colors=[INCOME_COLOR, EXPENSE_COLOR]),
            sort=False,
        )
    )
    fig.update_layout(margin=dict(l=0, r=0, t=20, b=0))
    return fig
