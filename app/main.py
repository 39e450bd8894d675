"""
Streamlit Frontend for Expense Tracker

Single page:
- Signed out: a sign-in card
- Signed in: summary cards, the add form, the monthly breakdown charts
  and the full transaction table

DESIGN PRINCIPLES:
1. What is shown comes from the store subscription, nothing else
2. The form only talks to the store; it never edits the table
3. Invalid input gets a clear, blocking message and changes nothing
"""

from typing import Optional

import streamlit as st

from expense_tracker.audit import configure_logging
from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.forms import TransactionFormController
from expense_tracker.models import Category, TransactionType
from expense_tracker.services.identity import StreamlitIdentityProvider
from expense_tracker.services.storage import StorageError
from expense_tracker.session import (
    DashboardSession,
    create_app_components,
    create_identity_provider,
    create_session,
    run_async,
)
from expense_tracker.views import (
    badge_html,
    category_net_bar,
    format_money,
    income_expense_pie,
    transaction_rows,
)


# Page configuration
st.set_page_config(
    page_title="Expense Tracker Dashboard",
    page_icon="💸",
    layout="wide",
)

st.markdown("""
<style>
    .badge {
        display: inline-block;
        padding: 4px 10px;
        border-radius: 999px;
        background-color: rgba(124,92,255,0.15);
        font-size: 0.85em;
    }
    .stat-card {
        padding: 16px 20px;
        border-radius: 10px;
        background-color: rgba(127,127,127,0.08);
    }
    .stat-value {
        font-size: 28px;
        font-weight: bold;
    }
    .success { color: #30d158; }
    .danger { color: #ff5c7a; }
</style>
""", unsafe_allow_html=True)


FORM_KEYS = {
    "amount": "tx_amount",
    "type": "tx_type",
    "category": "tx_category",
    "date": "tx_date",
    "note": "tx_note",
}


@st.cache_resource
def get_components():
    """Process-wide store and audit logger (cached)."""
    settings = get_settings().app
    configure_logging("DEBUG" if settings.debug_mode else settings.log_level)
    return create_app_components(settings)


def get_session() -> tuple[DashboardSession, TransactionFormController]:
    """
    Per-browser-session dashboard state.

    Every run re-reads the signed-in user and re-applies it, so a store
    subscription that failed on an earlier run is retried here.
    """
    store, audit_logger = get_components()
    try:
        if "dashboard" not in st.session_state:
            provider = create_identity_provider(get_settings().app)
            if isinstance(provider, StreamlitIdentityProvider):
                provider.refresh()
            st.session_state.dashboard = create_session(store, provider, audit_logger)
            st.session_state.identity_provider = provider

        provider = st.session_state.identity_provider
        if isinstance(provider, StreamlitIdentityProvider):
            provider.refresh()
        session, _ = st.session_state.dashboard
        session.sync()
    except StorageError as e:
        st.error(f"Could not load your transactions: {e}")
        run_async(audit_logger.log_external_service_error("storage", str(e)))
        st.stop()

    return st.session_state.dashboard


def main():
    """Main application entry point."""
    session, form = get_session()
    settings = get_settings().app
    symbol = settings.currency_symbol

    if not session.is_signed_in:
        render_sign_in(session)
        return

    render_header(session)
    st.fragment(run_every=settings.refresh_interval_seconds)(render_summary)(session, symbol)

    col1, col2 = st.columns(2)
    with col1:
        render_form(session, form)
    with col2:
        st.fragment(run_every=settings.refresh_interval_seconds)(render_breakdown)(session)

    st.fragment(run_every=settings.refresh_interval_seconds)(render_transactions)(session, symbol)

    render_settings_panel()


def render_sign_in(session: DashboardSession):
    st.title("Expense Tracker Dashboard")
    st.markdown(badge_html("Sign in + live sync + charts"), unsafe_allow_html=True)
    with st.container(border=True):
        st.subheader("Sign in")
        st.button("Continue with Google", type="primary", on_click=session.sign_in)


def render_header(session: DashboardSession):
    col1, col2 = st.columns([4, 1])
    with col1:
        st.title("Expense Tracker Dashboard")
    with col2:
        st.markdown(
            badge_html(f"Logged in as {session.identity.label}"),
            unsafe_allow_html=True,
        )
        st.button("Sign out", on_click=session.sign_out)


def _stat_card(title: str, value: str, positive: Optional[bool]):
    css = "" if positive is None else ("success" if positive else "danger")
    st.markdown(f"""
    <div class="stat-card">
        <h4>{title}</h4>
        <div class="stat-value {css}">{value}</div>
    </div>
    """, unsafe_allow_html=True)


def render_summary(session: DashboardSession, symbol: str):
    summary = session.summary()
    col1, col2, col3 = st.columns(3)
    with col1:
        _stat_card("Income (this month)", format_money(summary.income, symbol), True)
    with col2:
        _stat_card("Expense (this month)", format_money(summary.expense, symbol), False)
    with col3:
        _stat_card("Net", format_money(summary.net, symbol), summary.net >= 0)


def _handle_submit(session: DashboardSession, form: TransactionFormController):
    """Form callback: runs before the rerun, so widget keys may be reset here."""
    form.update(**{field: st.session_state[key] for field, key in FORM_KEYS.items()})
    try:
        result = run_async(form.submit(session.identity))
    except StorageError as e:
        st.session_state.form_error = f"Could not save the transaction: {e}"
        _, audit_logger = get_components()
        run_async(audit_logger.log_external_service_error(
            service="storage",
            error_message=str(e),
            user_id=session.identity.uid if session.identity else None,
        ))
        return
    except Exception as e:
        st.session_state.form_error = f"Something went wrong while saving: {e}"
        _, audit_logger = get_components()
        run_async(audit_logger.log_error(
            error_type="submit_failed",
            error_message=str(e),
            user_id=session.identity.uid if session.identity else None,
        ))
        return

    if result.accepted:
        st.session_state[FORM_KEYS["amount"]] = form.state.amount
        st.session_state[FORM_KEYS["note"]] = form.state.note
        st.session_state.form_notice = "Transaction added."
    else:
        st.session_state.form_error = result.message


def render_form(session: DashboardSession, form: TransactionFormController):
    """Render the 'Add Transaction' card."""
    state = form.state
    for field, key in FORM_KEYS.items():
        if key not in st.session_state:
            st.session_state[key] = getattr(state, field)

    with st.container(border=True):
        st.subheader("Add Transaction")
        with st.form("add_transaction"):
            cols = st.columns(5)
            cols[0].text_input("Amount", key=FORM_KEYS["amount"], placeholder="0.00")
            cols[1].selectbox(
                "Type",
                options=[TransactionType.EXPENSE.value, TransactionType.INCOME.value],
                format_func=str.title,
                key=FORM_KEYS["type"],
            )
            cols[2].selectbox(
                "Category",
                options=[c.value for c in Category],
                key=FORM_KEYS["category"],
            )
            cols[3].date_input("Date", key=FORM_KEYS["date"])
            cols[4].text_input("Note", key=FORM_KEYS["note"], placeholder="optional")
            st.form_submit_button(
                "Add",
                type="primary",
                on_click=_handle_submit,
                args=(session, form),
                disabled=form.is_submitting,
            )

        if "form_error" in st.session_state:
            st.error(st.session_state.pop("form_error"))
        if "form_notice" in st.session_state:
            st.success(st.session_state.pop("form_notice"))


def render_breakdown(session: DashboardSession):
    summary = session.summary()
    with st.container(border=True):
        st.subheader("Breakdown (this month)")
        if summary.by_category:
            st.plotly_chart(category_net_bar(summary), use_container_width=True)
        else:
            st.info("Add a few transactions to see charts.")
        st.divider()
        st.plotly_chart(income_expense_pie(summary), use_container_width=True)


def render_transactions(session: DashboardSession, symbol: str):
    with st.container(border=True):
        st.subheader("All Transactions")
        if not session.transactions:
            st.info("No transactions yet.")
            return
        st.dataframe(
            transaction_rows(session.transactions, symbol),
            hide_index=True,
            use_container_width=True,
        )


def render_settings_panel():
    """Connection status, in the sidebar."""
    with st.sidebar:
        st.markdown("### Connection Status")
        status = validate_all_settings()
        settings = get_settings().app
        st.caption(
            f"Storage: {settings.storage_backend.value} | "
            f"Identity: {settings.identity_backend.value}"
        )
        for name, key in [("App settings", "app"), ("Google Sheets (Storage)", "google_sheets")]:
            if status.get(key, False):
                st.success(f"✅ {name} - Configured")
            else:
                error = status.get(f"{key}_error", "Not configured")
                st.warning(f"⚠️ {name} - {error}")


if __name__ == "__main__":
    main()
