"""Supplier management page."""
import streamlit as st
from streamlit_free_text_select import st_free_text_select

from core import workflow
from core.auth import is_authorized
from core.constants import MENU_SUPPLIERS
from core.services import add_supplier, get_suppliers, set_supplier_status
from ui.components import access_denied, badge, flash, queue_flash, render_table, search_frame

PAYMENT_TERMS = ["Net 15", "Net 30", "Net 45", "Net 60", "Cash on Delivery"]


def render(conn, user):
    """Render suppliers page."""
    if not is_authorized(user, MENU_SUPPLIERS):
        access_denied()
        return

    st.title("🚚 Suppliers")
    flash()

    st.subheader("Add supplier")
    with st.form("add_supplier_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Company Name *")
            contact = st.text_input("Contact Person")
            email = st.text_input("Email *")
        with col2:
            phone = st.text_input("Phone *")
            terms = st.selectbox("Payment Terms", PAYMENT_TERMS, index=1)
            address = st.text_area("Address")
        submitted = st.form_submit_button("✅ Add supplier")
    if submitted:
        try:
            add_supplier(
                conn,
                {
                    "name": name,
                    "contact_person": contact.strip(),
                    "email": email,
                    "phone": phone,
                    "address": address.strip(),
                    "payment_terms": terms,
                },
            )
            queue_flash(f"Supplier {name.strip()} added")
            st.rerun()
        except ValueError as e:
            st.error(str(e))

    st.subheader("Existing suppliers")
    df = get_suppliers(conn)
    search = st.text_input("Search by name, contact or email", key="supplier_search")
    df = search_frame(df, search, ["name", "contact_person", "email"])
    if not df.empty:
        df = df.assign(status_badge=df["status"].map(badge))
    render_table(
        df,
        {
            "name": "Supplier",
            "contact_person": "Contact",
            "email": "Email",
            "phone": "Phone",
            "payment_terms": "Terms",
            "total_orders": "Orders",
            "last_order": "Last Order",
            "status_badge": "Status",
        },
        empty_message="No suppliers found",
    )
    if df.empty:
        return

    options = df["name"].tolist()
    selected = st_free_text_select(
        "Select supplier",
        options,
        key="supplier_select",
        placeholder="Type to search or select",
    )
    if not selected or selected not in options:
        return
    row = df[df["name"] == selected].iloc[0]
    for new_status in workflow.allowed_transitions(workflow.SUPPLIER, row["status"]):
        if st.button(f"Mark {new_status}", key=f"supplier_status_{int(row['id'])}_{new_status}"):
            try:
                set_supplier_status(conn, int(row["id"]), new_status)
                queue_flash(f"{selected} is now {new_status}")
                st.rerun()
            except ValueError as e:
                st.error(str(e))
