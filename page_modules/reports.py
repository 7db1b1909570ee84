"""Reports page: sales, inventory and finance charts with exports."""
import plotly.express as px
import streamlit as st

from core.auth import is_authorized
from core.config import local_today
from core.constants import MENU_REPORTS
from core.exports import EXCEL_MIME, to_excel_bytes, to_pdf_bytes
from core.reports import category_distribution, low_stock_items, sales_by_month, top_medicines
from core.services import cash_flow_summary, get_expenses
from ui.components import access_denied, money, render_table


def render(conn, user):
    """Render the reports page."""
    if not is_authorized(user, MENU_REPORTS):
        access_denied()
        return

    st.header("📈 Reports & Analytics")

    monthly = sales_by_month(conn)
    top = top_medicines(conn)
    categories = category_distribution(conn)
    low_stock = low_stock_items(conn)

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Revenue", money(monthly["revenue"].sum() if not monthly.empty else 0))
    col2.metric("Completed Sales", int(monthly["sales"].sum()) if not monthly.empty else 0)
    col3.metric("Low Stock Items", len(low_stock))

    st.subheader("💰 Sales by Month")
    if monthly.empty:
        st.info("No completed sales yet")
    else:
        fig = px.bar(
            monthly,
            x="month",
            y="revenue",
            title="Revenue by Month",
            labels={"month": "Month", "revenue": "Revenue ($)"},
            text="sales",
        )
        st.plotly_chart(fig, width="stretch")

    left, right = st.columns(2)
    with left:
        st.subheader("🏆 Top Medicines")
        if top.empty:
            st.info("No sales data to display")
        else:
            fig = px.bar(
                top,
                x="medicine_name",
                y="revenue",
                labels={"medicine_name": "Medicine", "revenue": "Revenue ($)"},
                color="revenue",
                color_continuous_scale="Viridis",
            )
            st.plotly_chart(fig, width="stretch")
    with right:
        st.subheader("📦 Inventory by Category")
        if categories.empty:
            st.info("No stock data to display")
        else:
            fig = px.pie(categories, values="quantity", names="category")
            st.plotly_chart(fig, width="stretch")

    st.subheader("🧾 Expenses by Category")
    expenses = get_expenses(conn)
    if expenses.empty:
        st.info("No expenses recorded")
        by_category = expenses
    else:
        by_category = expenses.groupby("category")["amount"].sum().reset_index()
        fig = px.pie(by_category, values="amount", names="category")
        st.plotly_chart(fig, width="stretch")
    summary = cash_flow_summary(conn)
    st.caption(
        f"Total expenses {money(summary['total_expenses'])} · "
        f"Net cash flow {money(summary['net_cash_flow'])}"
    )

    st.subheader("⚠️ Low Stock")
    render_table(
        low_stock,
        {"name": "Medicine", "quantity": "In Stock", "minimum_stock": "Minimum"},
        empty_message="All medicines are sufficiently stocked",
    )

    st.markdown("---")
    st.subheader("Export Report")
    stamp = local_today().isoformat()
    sheets = {
        "Sales by Month": monthly,
        "Top Medicines": top,
        "Inventory by Category": categories,
        "Low Stock": low_stock,
        "Expenses by Category": by_category,
    }
    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            "Export Report (Excel)",
            data=to_excel_bytes(sheets),
            file_name=f"pharmacy_report_{stamp}.xlsx",
            mime=EXCEL_MIME,
        )
    with col2:
        st.download_button(
            "Export Sales Summary (PDF)",
            data=to_pdf_bytes(monthly, f"Sales by Month - {stamp}"),
            file_name=f"sales_summary_{stamp}.pdf",
            mime="application/pdf",
        )
