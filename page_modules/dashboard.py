"""Dashboard page with pharmacy overview and statistics."""
import plotly.express as px
import streamlit as st

from core.auth import is_authorized
from core.constants import MENU_DASHBOARD
from core.reports import category_distribution, dashboard_stats, expiring_items, low_stock_items, recent_activity
from core.services import get_settings
from ui.components import access_denied, badge, money, render_table


def render(conn, user):
    """Render the dashboard page."""
    if not is_authorized(user, MENU_DASHBOARD):
        access_denied()
        return

    st.header("📊 Dashboard")
    st.caption(f"Welcome back, {user['full_name']}")
    settings = get_settings(conn)
    stats = dashboard_stats(conn)

    col1, col2, col3, col4, col5 = st.columns(5)
    col1.metric("Total Medicines", stats["total_medicines"])
    col2.metric("Active Customers", stats["active_customers"])
    col3.metric("Prescriptions Today", stats["prescriptions_today"])
    col4.metric("Daily Revenue", money(stats["daily_revenue"]))
    col5.metric("Low Stock Alerts", stats["low_stock"])

    st.markdown("---")
    left, right = st.columns(2)

    with left:
        st.subheader("🔄 Recent Activity")
        render_table(
            recent_activity(conn),
            {"date": "Date", "action": "Activity", "who": "Customer / Patient"},
            empty_message="No recent activity",
        )

    with right:
        if settings["low_stock_alert"]:
            st.subheader("⚠️ Low Stock Alert")
            render_table(
                low_stock_items(conn),
                {"name": "Medicine", "quantity": "In Stock", "minimum_stock": "Minimum"},
                empty_message="All medicines are sufficiently stocked",
            )
        if settings["expiry_alert"]:
            st.subheader("⏳ Expiry Alert")
            expiring = expiring_items(conn, alert_days=settings["expiry_alert_days"])
            if not expiring.empty:
                expiring = expiring.assign(status_badge=expiring["expiry_status"].map(badge))
            render_table(
                expiring,
                {"name": "Medicine", "batch_number": "Batch", "expiry_date": "Expiry", "status_badge": "Status"},
                empty_message=f"Nothing expires in the next {settings['expiry_alert_days']} days",
            )

    st.subheader("📦 Stock by Category")
    categories = category_distribution(conn)
    if categories.empty:
        st.info("No stock data to display")
    else:
        fig = px.pie(categories, values="quantity", names="category", title="Units in Stock by Category")
        st.plotly_chart(fig, width="stretch")
