"""
Streamlit Frontend for Finance Tracker

The dashboard a small business owner uses day to day.

DESIGN PRINCIPLES:
1. Numbers first: revenue, expenses and profit at a glance
2. Every figure on a page comes from one store snapshot
3. Clear error messages; a failed save is always shown
4. AI suggestions are optional and never saved automatically

Run with:  streamlit run app/main.py
"""

import asyncio
from datetime import date

import streamlit as st

from finance_tracker.agents import CategorySuggestionError
from finance_tracker.audit import configure_logging, create_correlation_id
from finance_tracker.config import get_settings, validate_all_settings
from finance_tracker.export import google_calendar_link
from finance_tracker.models.records import EventKind, TransactionType
from finance_tracker.orchestrator import AppComponents, create_app_components
from finance_tracker.views import CURRENCY_SYMBOLS, currency_symbol, format_money


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💼",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    app_settings = get_settings().app
    configure_logging(app_settings.log_level, json_output=app_settings.log_json)
    return create_app_components()


def main():
    """Main application entry point."""
    components = get_components()

    st.sidebar.title("💼 Finance Tracker")
    st.sidebar.markdown("---")

    currencies = list(CURRENCY_SYMBOLS)
    if "currency" not in st.session_state:
        st.session_state.currency = get_settings().app.currency
    currency = st.sidebar.selectbox(
        "Currency",
        options=currencies,
        key="currency",
        format_func=lambda c: f"{c} ({currency_symbol(c)})",
    )
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "💸 Transactions", "📅 Calendar", "⚙️ Settings"],
        index=0,
    )

    if page == "📊 Dashboard":
        render_dashboard_page(components, currency)
    elif page == "💸 Transactions":
        render_transactions_page(components, currency)
    elif page == "📅 Calendar":
        render_calendar_page(components)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_dashboard_page(components: AppComponents, currency: str):
    """Summary metrics, charts and the yearly export."""
    st.title("📊 Dashboard")

    snapshot = run_async(components.dashboard_flow.load_dashboard())

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Revenue", format_money(snapshot.summary.revenue, currency))
    col2.metric("Total Expenses", format_money(snapshot.summary.expenses, currency))
    col3.metric("Net Profit", format_money(snapshot.summary.profit, currency))

    st.markdown("---")

    left, right = st.columns([3, 2])

    symbol = currency_symbol(currency)

    with left:
        st.subheader(f"Last {len(snapshot.daily_series)} days")
        st.line_chart(
            {
                "Date": [p.date.isoformat() for p in snapshot.daily_series],
                f"Revenue ({symbol})": [float(p.revenue) for p in snapshot.daily_series],
                f"Expenses ({symbol})": [float(p.expenses) for p in snapshot.daily_series],
            },
            x="Date",
            y=[f"Revenue ({symbol})", f"Expenses ({symbol})"],
        )

    with right:
        st.subheader("Expenses by category")
        if snapshot.category_breakdown:
            st.bar_chart(
                {
                    "Category": list(snapshot.category_breakdown.keys()),
                    f"Amount ({symbol})": [float(v) for v in snapshot.category_breakdown.values()],
                },
                x="Category",
                y=f"Amount ({symbol})",
            )
        else:
            st.info("No expenses recorded yet.")

    st.markdown("---")
    st.subheader("📥 Export")

    window_days = st.number_input(
        "Export window (days)",
        min_value=1,
        value=get_settings().app.export_window_days,
        step=1,
        help="Transactions dated within this many days are exported",
    )
    if st.button("Prepare CSV export"):
        report = run_async(
            components.export_flow.export_trailing_window(int(window_days))
        )
        if report.is_empty:
            st.warning(f"There are no transactions in the last {report.window_days} days to export.")
        else:
            st.download_button(
                f"⬇️ Download {report.filename} ({report.row_count} rows)",
                data=report.content,
                file_name=report.filename,
                mime="text/csv",
            )


def render_transactions_page(components: AppComponents, currency: str):
    """Add-transaction form with AI category suggestions, plus history."""
    st.title("💸 Transactions")

    if "suggested_categories" not in st.session_state:
        st.session_state.suggested_categories = []

    st.subheader("Add transaction")

    col1, col2 = st.columns(2)
    with col1:
        transaction_type = st.radio(
            "Type",
            options=list(TransactionType),
            index=1,
            format_func=lambda t: t.value.title(),
            horizontal=True,
        )
        amount = st.number_input(
            f"Amount ({currency_symbol(currency)}) *", min_value=0.0, step=0.01, format="%.2f"
        )
        transaction_date = st.date_input("Date *", value=date.today())
    with col2:
        description = st.text_input("Description *", placeholder="e.g. Team lunch with client")

        if st.button("✨ Suggest categories"):
            with st.spinner("Asking the AI for suggestions..."):
                try:
                    st.session_state.suggested_categories = run_async(
                        components.category_flow.suggest(description)
                    )
                except ValueError as e:
                    st.error(str(e))
                except CategorySuggestionError:
                    st.error("Could not suggest categories right now. Please enter one yourself.")

        suggestions = st.session_state.suggested_categories
        picked = None
        if suggestions:
            picked = st.radio("Suggestions", options=suggestions, horizontal=True)
        category = st.text_input("Category *", value=picked or "")

    if st.button("💾 Save transaction", type="primary"):
        result, write, message = run_async(
            components.record_flow.submit_transaction(
                {
                    "type": transaction_type,
                    "date": transaction_date,
                    "amount": amount,
                    "description": description,
                    "category": category,
                },
                correlation_id=create_correlation_id(),
            )
        )
        if write is None:
            st.error(message)
        elif not write.success:
            st.error(message)
        else:
            st.success("Transaction added.")
            if result.warnings:
                st.warning(message)
            st.session_state.suggested_categories = []

    st.markdown("---")
    st.subheader("History")

    transactions = run_async(components.store.list_transactions())
    if not transactions:
        st.info("No transactions yet. Add your first one above.")
        return

    st.dataframe(
        [
            {
                "Date": t.date.isoformat(),
                "Type": t.type.value.title(),
                "Description": t.description,
                "Category": t.category,
                "Amount": format_money(t.amount, currency),
            }
            for t in transactions
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_calendar_page(components: AppComponents):
    """Reminders for a chosen day and a form to add new ones."""
    st.title("📅 Calendar")

    selected_day = st.date_input("Show day", value=date.today())
    snapshot = run_async(
        components.dashboard_flow.load_dashboard(selected_day=selected_day)
    )

    st.subheader(f"Reminders for {selected_day.strftime('%d %B %Y')}")
    if not snapshot.events_on_selected_day:
        st.info("Nothing scheduled for this day.")
    for event in snapshot.events_on_selected_day:
        icon = "⏰" if event.kind == EventKind.REMINDER else "📌"
        st.markdown(f"**{icon} {event.title}**")
        if event.description:
            st.caption(event.description)

    st.markdown("---")
    st.subheader("Add reminder")

    with st.form("reminder_form", clear_on_submit=True):
        title = st.text_input("Title *")
        event_date = st.date_input("Date *", value=selected_day)
        kind = st.selectbox(
            "Kind",
            options=list(EventKind),
            index=1,
            format_func=lambda k: k.value.title(),
        )
        details = st.text_area("Description (optional)")
        add_to_google = st.checkbox("Add to Google Calendar")
        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        result, write, message = run_async(
            components.record_flow.submit_event(
                {
                    "title": title,
                    "date": event_date,
                    "kind": kind,
                    "description": details or None,
                    "add_to_google_calendar": add_to_google,
                },
                correlation_id=create_correlation_id(),
            )
        )
        if write is None or not write.success:
            st.error(message)
        else:
            st.success("Reminder added to calendar.")
            if write.record.add_to_google_calendar:
                st.link_button(
                    "Open in Google Calendar",
                    google_calendar_link(write.record),
                )


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Storage", "storage"),
        ("Gemini (category suggestions)", "gemini"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if status.get("storage"):
        storage = get_settings().storage
        location = storage.json_path if storage.backend == "json" else (
            storage.database_url or storage.sqlite_path
        )
        st.markdown(f"**Backend:** `{storage.backend}` at `{location}`")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
