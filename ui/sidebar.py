"""Sidebar menu, filtered by the signed-in user's role."""
from typing import MutableMapping

import streamlit as st

from core.auth import SESSION_PARAM, allowed_pages, sign_out
from core.constants import MENU_DASHBOARD


def render_sidebar_menu(user: dict, state: MutableMapping) -> str:
    """Render the sidebar navigation menu and return the selected page."""
    menu = allowed_pages(user["role"]) or [MENU_DASHBOARD]
    if state.get("menu_selection") not in menu:
        state["menu_selection"] = menu[0]

    st.sidebar.title("\U0001F48A PharmaCare")
    st.sidebar.caption("Management System")
    selected = st.sidebar.radio("Select Page", menu, key="menu_selection")

    st.sidebar.markdown("---")
    st.sidebar.write(f"**{user['full_name']}**")
    st.sidebar.caption(f"{user['email']} · {user['role'].title()}")
    if st.sidebar.button("\U0001F6AA Logout", key="sidebar_logout"):
        sign_out(state)
        st.query_params.pop(SESSION_PARAM, None)
        st.toast("You have been successfully logged out", icon="\U0001F512")
        st.rerun()
    return selected
