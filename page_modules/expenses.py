"""Expenses and cash flow page."""
import streamlit as st

from core.auth import is_authorized
from core.constants import CASH_FLOW_TYPES, EXPENSE_CATEGORIES, EXPENSE_PAYMENT_METHODS, MENU_EXPENSES
from core.services import add_cash_flow, add_expense, cash_flow_summary, get_cash_flows, get_expenses
from ui.components import access_denied, flash, money, queue_flash, render_export_buttons, render_table, search_frame


def render(conn, user):
    """Render the expenses page."""
    if not is_authorized(user, MENU_EXPENSES):
        access_denied()
        return

    st.header("🧾 Expenses & Cash Flow")
    flash()

    summary = cash_flow_summary(conn)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Expenses", money(summary["total_expenses"]))
    col2.metric("Cash In", money(summary["cash_in"]))
    col3.metric("Cash Out", money(summary["cash_out"]))
    col4.metric("Net Cash Flow", money(summary["net_cash_flow"]))

    expenses_tab, flow_tab = st.tabs(["Expenses", "Cash Flow"])

    with expenses_tab:
        with st.form("add_expense_form", clear_on_submit=True):
            col1, col2, col3 = st.columns(3)
            category = col1.selectbox("Category *", EXPENSE_CATEGORIES)
            amount = col2.number_input("Amount ($) *", min_value=0.0, step=1.0)
            expense_date = col3.date_input("Date")
            col1, col2 = st.columns(2)
            description = col1.text_input("Description *")
            payment_method = col2.selectbox("Payment Method", EXPENSE_PAYMENT_METHODS)
            receipt = st.text_input("Receipt / Reference")
            submitted = st.form_submit_button("✅ Add expense")
        if submitted:
            try:
                add_expense(
                    conn,
                    {
                        "category": category,
                        "description": description,
                        "amount": amount,
                        "expense_date": expense_date,
                        "payment_method": payment_method,
                        "receipt": receipt.strip(),
                        "created_by": user["full_name"],
                    },
                )
                queue_flash("Expense recorded")
                st.rerun()
            except ValueError as e:
                st.error(str(e))

        df = get_expenses(conn)
        search = st.text_input("Search by category or description", key="expense_search")
        df = search_frame(df, search, ["category", "description", "receipt"])
        columns = {
            "expense_date": "Date",
            "category": "Category",
            "description": "Description",
            "amount": "Amount",
            "payment_method": "Payment",
            "receipt": "Receipt",
            "created_by": "Recorded By",
        }
        render_table(df, columns, empty_message="No expenses recorded")
        if not df.empty:
            render_export_buttons(df[list(columns)], "Expenses", "expenses", key="expenses_export")

    with flow_tab:
        with st.form("add_cash_flow_form", clear_on_submit=True):
            col1, col2, col3 = st.columns(3)
            flow_type = col1.selectbox("Type *", CASH_FLOW_TYPES)
            amount = col2.number_input("Amount ($) *", min_value=0.0, step=1.0, key="flow_amount")
            flow_date = col3.date_input("Date", key="flow_date")
            col1, col2 = st.columns(2)
            description = col1.text_input("Description *", key="flow_description")
            reference = col2.text_input("Reference", key="flow_reference")
            submitted = st.form_submit_button("✅ Add entry")
        if submitted:
            try:
                add_cash_flow(
                    conn,
                    {
                        "flow_type": flow_type,
                        "amount": amount,
                        "description": description,
                        "flow_date": flow_date,
                        "reference": reference.strip(),
                    },
                )
                queue_flash(f"{flow_type} entry recorded")
                st.rerun()
            except ValueError as e:
                st.error(str(e))

        render_table(
            get_cash_flows(conn),
            {
                "flow_date": "Date",
                "flow_type": "Type",
                "description": "Description",
                "amount": "Amount",
                "reference": "Reference",
            },
            empty_message="No cash flow entries",
        )
