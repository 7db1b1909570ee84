"""PharmaCare - Main Application Entry Point."""
import logging

import streamlit as st

from core.auth import SESSION_PARAM, current_user, is_authorized, login_form, restore_session
from core.config import LOG_LEVEL
from core.constants import (
    MENU_CUSTOMERS,
    MENU_DASHBOARD,
    MENU_EXPENSES,
    MENU_INVENTORY,
    MENU_PRESCRIPTIONS,
    MENU_PURCHASES,
    MENU_REPORTS,
    MENU_SALES,
    MENU_SETTINGS,
    MENU_SUPPLIERS,
    MENU_USER_MANAGEMENT,
)
from core.db_init import init_db
from ui.components import access_denied
from ui.sidebar import render_sidebar_menu

# Import page render functions
from page_modules import (
    customers,
    dashboard,
    expenses,
    inventory,
    prescriptions,
    purchases,
    reports,
    sales,
    settings,
    suppliers,
    user_management,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Page configuration
st.set_page_config(
    page_title="PharmaCare",
    page_icon="💊",
    layout="wide",
)


# Initialize database connection (cached to avoid reconnecting on every interaction)
@st.cache_resource
def get_db_connection():
    return init_db()


conn = get_db_connection()

# Check authentication (the session token travels in this browser's URL)
if not restore_session(conn, st.session_state, token=st.query_params.get(SESSION_PARAM)):
    st.query_params.pop(SESSION_PARAM, None)
    login_form(conn, st.session_state)
    st.stop()

if st.session_state.get("session_token"):
    st.query_params[SESSION_PARAM] = st.session_state["session_token"]

user = current_user(st.session_state)
menu = render_sidebar_menu(user, st.session_state)

# Page routing
pages = {
    MENU_DASHBOARD: lambda: dashboard.render(conn, user),
    MENU_INVENTORY: lambda: inventory.render(conn, user),
    MENU_SALES: lambda: sales.render(conn, user),
    MENU_CUSTOMERS: lambda: customers.render(conn, user),
    MENU_PRESCRIPTIONS: lambda: prescriptions.render(conn, user),
    MENU_SUPPLIERS: lambda: suppliers.render(conn, user),
    MENU_PURCHASES: lambda: purchases.render(conn, user),
    MENU_EXPENSES: lambda: expenses.render(conn, user),
    MENU_REPORTS: lambda: reports.render(conn, user),
    MENU_SETTINGS: lambda: settings.render(conn, user),
    MENU_USER_MANAGEMENT: lambda: user_management.render(conn, user),
}

# Render selected page
if menu not in pages:
    menu = MENU_DASHBOARD
if is_authorized(user, menu):
    pages[menu]()
else:
    access_denied()
