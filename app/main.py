"""
Streamlit Frontend for Ledgerbook

Pages: Sign in (visitors), Dashboard, Reports, the five record
categories, User Management (admins) and Profile. Visitors can browse
read-only; new accounts start without a role until an admin assigns one.

The UI never decides permissions itself: controls are drawn from
allowed_actions(), and every mutation still goes through a workflow
that enforces the access policy.
"""

import asyncio
from datetime import date

import streamlit as st

from ledgerbook.access import allowed_actions, can_manage_roles
from ledgerbook.errors import AuthenticationError, AuthorizationDenied, ValidationError
from ledgerbook.models import (
    Action,
    DebtStatus,
    Period,
    RecordCategory,
    Role,
    Session,
    StockStatus,
    ToGiveStatus,
    format_currency,
)
from ledgerbook.orchestrator import LedgerComponents, create_app_components
from ledgerbook.services.storage import PersistenceError
from ledgerbook.summary import StaleResultError


st.set_page_config(
    page_title="Ledgerbook",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

STATUS_CHOICES = {
    RecordCategory.TO_GIVE: [s.value for s in ToGiveStatus],
    RecordCategory.DEBT: [s.value for s in DebtStatus],
    RecordCategory.STOCK: [s.value for s in StockStatus],
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> LedgerComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def current_session(components: LedgerComponents) -> Session:
    if "session" not in st.session_state:
        st.session_state.session = run_async(components.sessions.refresh())
    return st.session_state.session


def show_error(e: Exception) -> None:
    if isinstance(e, ValidationError):
        for field, messages in e.field_errors().items():
            for message in messages:
                st.error(message)
    elif isinstance(e, AuthenticationError):
        st.error(str(e))
    elif isinstance(e, AuthorizationDenied):
        st.error(f"Not allowed: {e}")
    else:
        st.error(f"Error: {e}")


def period_picker(key: str) -> Period:
    today = date.today()
    col1, col2 = st.columns(2)
    with col1:
        month = st.selectbox(
            "Month",
            options=["all"] + list(range(1, 13)),
            index=today.month,
            format_func=lambda m: "All time" if m == "all" else MONTHS[m - 1],
            key=f"{key}_month",
        )
    with col2:
        year = st.selectbox(
            "Year",
            options=[today.year - i for i in range(5)],
            key=f"{key}_year",
        )
    return Period(month=month, year=year)


def load_summary(components: LedgerComponents, period: Period):
    try:
        return run_async(components.summary.load(period))
    except StaleResultError:
        return components.summary.latest
    except PersistenceError as e:
        st.error(f"Could not load totals: {e}")
        return None


def main():
    """Main application entry point."""
    components = get_components()
    session = current_session(components)
    currency = components.settings.currency

    st.sidebar.title("📒 Ledgerbook")
    if session.is_authenticated:
        st.sidebar.caption(f"{session.user.email} · {session.role.value}")
        if st.sidebar.button("Sign out"):
            try:
                st.session_state.session = run_async(components.sessions.sign_out())
                st.rerun()
            except PersistenceError as e:
                show_error(e)
    else:
        st.sidebar.caption("Not signed in (read only)")
    st.sidebar.markdown("---")

    pages = ["Dashboard", "In", "Out", "To Give", "Debt", "Stock", "Reports", "Profile"]
    if not session.is_authenticated:
        pages.insert(0, "Sign in")
    if can_manage_roles(session.role):
        pages.append("User Management")
    page = st.sidebar.radio("Navigate to:", pages, index=0)

    if page == "Sign in":
        render_sign_in(components)
    elif page == "Dashboard":
        render_dashboard(components, currency)
    elif page == "Reports":
        render_reports(components, currency)
    elif page == "Stock":
        render_stock_page(components, session, currency)
    elif page == "User Management":
        render_user_management(components, session)
    elif page == "Profile":
        render_profile(components, session)
    else:
        category = {
            "In": RecordCategory.INCOME,
            "Out": RecordCategory.EXPENSE,
            "To Give": RecordCategory.TO_GIVE,
            "Debt": RecordCategory.DEBT,
        }[page]
        render_records_page(components, session, category, currency)


def render_sign_in(components: LedgerComponents):
    st.title("Sign in")
    sign_in_tab, sign_up_tab = st.tabs(["Sign in", "Create account"])

    with sign_in_tab:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in", type="primary"):
                try:
                    st.session_state.session = run_async(
                        components.sessions.sign_in(email, password)
                    )
                    st.rerun()
                except (AuthenticationError, PersistenceError) as e:
                    show_error(e)

    with sign_up_tab:
        with st.form("sign_up"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            name = st.text_input("Name (optional)")
            username = st.text_input("Username (optional)")
            if st.form_submit_button("Create account", type="primary"):
                try:
                    st.session_state.session = run_async(
                        components.sessions.sign_up(email, password, name, username)
                    )
                    st.rerun()
                except (ValidationError, AuthenticationError, PersistenceError) as e:
                    show_error(e)
        st.caption("New accounts can view everything; an admin assigns roles for editing.")


def render_dashboard(components: LedgerComponents, currency: str):
    st.title("Dashboard")
    st.markdown("Overview of your finances")
    period = period_picker("dashboard")

    summary = load_summary(components, period)
    if summary is None:
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Money", format_currency(summary.cash, currency))
    col1.caption("Income - Expenses for selected period")
    col2.metric("To Give", format_currency(summary.to_give_total, currency))
    col2.caption("Total unpaid amount")
    col3.metric("Debt", format_currency(summary.debt_total, currency))
    col3.caption("Total not returned")


def render_reports(components: LedgerComponents, currency: str):
    st.title("Reports")
    st.markdown("Comprehensive financial overview")
    period = period_picker("reports")

    summary = load_summary(components, period)
    if summary is None:
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Current Money", format_currency(summary.cash, currency))
    col2.metric("Total In", format_currency(summary.total_income, currency))
    col3.metric("Total Out", format_currency(summary.total_expense, currency))

    col1, col2, col3 = st.columns(3)
    col1.metric("To Give", format_currency(summary.to_give_total, currency))
    col2.metric("Debt", format_currency(summary.debt_total, currency))
    col3.metric("Net Position", format_currency(summary.net_position, currency))
    col3.caption("Cash + Debt + Stock - To Give")

    st.metric("Stock Value", format_currency(summary.stock_value, currency))
    st.caption(f"{summary.stock_count} items in stock")


def record_form(category: RecordCategory, key: str, initial=None) -> dict:
    """Inputs for one record; returns raw form values for validation."""
    initial = initial or {}
    values = {}
    if category in (RecordCategory.TO_GIVE, RecordCategory.DEBT):
        values["person_name"] = st.text_input(
            "Person Name", value=initial.get("person_name", ""), key=f"{key}_person"
        )
    values["amount"] = st.number_input(
        "Amount", min_value=0.0, step=1.0, format="%.2f",
        value=float(initial.get("amount", 0) or 0), key=f"{key}_amount",
    )
    if category in (RecordCategory.INCOME, RecordCategory.EXPENSE):
        values["reason"] = st.text_input(
            "Reason", value=initial.get("reason", ""), key=f"{key}_reason"
        )
    values["date"] = st.date_input(
        "Date", value=initial.get("date", date.today()), key=f"{key}_date"
    )
    if category in STATUS_CHOICES:
        choices = STATUS_CHOICES[category]
        current = initial.get("status")
        current = getattr(current, "value", current) or choices[0]
        values["status"] = st.selectbox(
            "Status", choices, index=choices.index(current), key=f"{key}_status"
        )
    return values


def render_records_page(
    components: LedgerComponents,
    session: Session,
    category: RecordCategory,
    currency: str,
):
    workflow = components.workflow(category)
    actions = allowed_actions(session.role)
    st.title(category.label)

    period = None
    if workflow.descriptor.period_bounded:
        period = period_picker(category.value)

    if Action.CREATE in actions:
        with st.expander(f"➕ Add {category.label} record"):
            with st.form(f"add_{category.value}"):
                values = record_form(category, f"add_{category.value}")
                if st.form_submit_button("Save", type="primary"):
                    try:
                        run_async(workflow.create(session, values))
                        st.success("Record added successfully")
                    except (ValidationError, AuthorizationDenied, PersistenceError) as e:
                        show_error(e)

    try:
        records = run_async(workflow.list_records(period))
    except PersistenceError as e:
        st.error(f"Could not load records: {e}")
        return

    total = sum((r.amount for r in records), start=0)
    st.markdown(f"**Total:** {format_currency(total, currency)}")

    if not records:
        st.info("No records found")
        return

    for record in records:
        title = getattr(record, "reason", None) or getattr(record, "person_name", "")
        with st.container(border=True):
            col1, col2 = st.columns([3, 1])
            with col1:
                st.markdown(f"**{title}** · {format_currency(record.amount, currency)}")
                status = getattr(record, "status", None)
                st.caption(f"{record.date}" + (f" · {status.value}" if status else ""))
            with col2:
                if Action.UPDATE in actions:
                    with st.popover("Edit"):
                        with st.form(f"edit_{record.id}"):
                            values = record_form(category, f"edit_{record.id}", record.model_dump())
                            if st.form_submit_button("Update"):
                                try:
                                    run_async(workflow.update(session, record.id, values))
                                    st.success("Record updated successfully")
                                    st.rerun()
                                except (ValidationError, AuthorizationDenied, PersistenceError) as e:
                                    show_error(e)
                if Action.DELETE in actions:
                    if st.button("Delete", key=f"delete_{record.id}"):
                        try:
                            run_async(workflow.delete(session, record.id))
                            st.rerun()
                        except (AuthorizationDenied, PersistenceError) as e:
                            show_error(e)


def render_stock_page(components: LedgerComponents, session: Session, currency: str):
    workflow = components.workflow(RecordCategory.STOCK)
    actions = allowed_actions(session.role)
    st.title("Stock")
    st.markdown("Manage your inventory")

    if Action.CREATE in actions:
        with st.expander("➕ Add Item"):
            with st.form("add_stock"):
                values = {
                    "item_name": st.text_input("Item Name"),
                    "description": st.text_area("Description (optional)"),
                    "quantity": st.number_input("Quantity", min_value=1, step=1, value=1),
                    "purchase_price": st.number_input(
                        "Purchase Price (per unit)", min_value=0.0, step=1.0, format="%.2f"
                    ),
                    "purchase_date": st.date_input("Purchase Date", value=date.today()),
                    "status": st.selectbox("Status", STATUS_CHOICES[RecordCategory.STOCK]),
                }
                if st.form_submit_button("Save", type="primary"):
                    try:
                        result = run_async(
                            components.stock_purchases.record_purchase(session, values)
                        )
                        if result.is_partial:
                            st.warning(str(result.warning))
                        else:
                            cost = format_currency(result.stock_item.total_cost, currency)
                            st.success(f"Stock item added! {cost} recorded as expense.")
                    except (ValidationError, AuthorizationDenied, PersistenceError) as e:
                        show_error(e)

    try:
        items = run_async(workflow.list_records())
    except PersistenceError as e:
        st.error(f"Failed to fetch stock items: {e}")
        return

    total_value = sum((item.total_cost for item in items), start=0)
    st.markdown(f"**Total value:** {format_currency(total_value, currency)}")

    for item in items:
        with st.container(border=True):
            col1, col2 = st.columns([3, 1])
            with col1:
                st.markdown(
                    f"**{item.item_name}** · {item.quantity} × "
                    f"{format_currency(item.purchase_price, currency)}"
                )
                st.caption(f"{item.purchase_date} · {item.status.value}")
                if item.description:
                    st.caption(item.description)
            with col2:
                if Action.DELETE in actions:
                    if st.button("Delete", key=f"delete_{item.id}"):
                        try:
                            run_async(workflow.delete(session, item.id))
                            st.rerun()
                        except (AuthorizationDenied, PersistenceError) as e:
                            show_error(e)


def render_user_management(components: LedgerComponents, session: Session):
    st.title("User Management")
    try:
        users = run_async(components.users.list_users(session))
    except (AuthorizationDenied, PersistenceError) as e:
        show_error(e)
        return

    role_options = [r.value for r in Role]
    for user in users:
        col1, col2, col3 = st.columns([3, 2, 1])
        col1.markdown(f"**{user.name or user.email}**  \n{user.email}")
        chosen = col2.selectbox(
            "Role", role_options,
            index=role_options.index(user.role.value),
            key=f"role_{user.id}",
        )
        if col3.button("Apply", key=f"apply_{user.id}"):
            try:
                run_async(components.users.assign_role(session, user.id, chosen))
                st.success("Role updated successfully")
                if session.user_id == user.id:
                    st.session_state.session = run_async(components.sessions.refresh())
                st.rerun()
            except (AuthorizationDenied, PersistenceError) as e:
                show_error(e)


def render_profile(components: LedgerComponents, session: Session):
    st.title("Profile")
    if not session.is_authenticated:
        st.info("Sign in to edit your profile.")
        return

    st.markdown(f"**Email:** {session.user.email}")
    st.markdown(f"**Role:** {session.role.value}")
    with st.form("profile"):
        name = st.text_input("Name")
        username = st.text_input("Username")
        if st.form_submit_button("Save", type="primary"):
            try:
                run_async(components.users.update_profile(session, name, username))
                st.success("Profile updated successfully")
            except (ValidationError, AuthorizationDenied, PersistenceError) as e:
                show_error(e)


if __name__ == "__main__":
    main()
