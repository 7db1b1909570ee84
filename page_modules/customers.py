"""Customer registry page."""
from datetime import date

import streamlit as st
from streamlit_free_text_select import st_free_text_select

from core import workflow
from core.auth import is_authorized
from core.config import local_today
from core.constants import GENDERS, MENU_CUSTOMERS
from core.services import add_customer, calculate_age, get_customers, set_customer_status
from ui.components import access_denied, badge, flash, money, queue_flash, render_table, search_frame


def render(conn, user):
    """Render customers page."""
    if not is_authorized(user, MENU_CUSTOMERS):
        access_denied()
        return

    st.title("👥 Customers")
    flash()

    st.subheader("Add customer")
    with st.form("add_customer_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Full Name *")
            email = st.text_input("Email *")
            phone = st.text_input("Phone *")
            dob = st.date_input("Date of Birth", value=None, min_value=date(1900, 1, 1), max_value=local_today())
        with col2:
            gender = st.selectbox("Gender", GENDERS)
            emergency = st.text_input("Emergency Contact")
            allergies = st.text_input("Allergies", placeholder="e.g. Penicillin, Sulfa")
            address = st.text_area("Address")
        submitted = st.form_submit_button("✅ Add customer")
    if submitted:
        try:
            add_customer(
                conn,
                {
                    "name": name,
                    "email": email,
                    "phone": phone,
                    "address": address.strip(),
                    "date_of_birth": dob.isoformat() if dob else None,
                    "gender": gender,
                    "emergency_contact": emergency.strip(),
                    "allergies": allergies.strip(),
                },
            )
            queue_flash(f"Customer {name.strip()} added")
            st.rerun()
        except ValueError as e:
            st.error(str(e))

    st.subheader("Customer list")
    df = get_customers(conn)
    search = st.text_input("Search by name, email or phone", key="customer_search")
    df = search_frame(df, search, ["name", "email", "phone"])
    if not df.empty:
        df = df.assign(
            age=[calculate_age(d) for d in df["date_of_birth"]],
            status_badge=df["status"].map(badge),
            purchases=df["total_purchases"].map(money),
        )
        df["age"] = df["age"].astype("Int64")
    render_table(
        df,
        {
            "name": "Name",
            "email": "Email",
            "phone": "Phone",
            "age": "Age",
            "gender": "Gender",
            "allergies": "Allergies",
            "registration_date": "Registered",
            "purchases": "Total Purchases",
            "status_badge": "Status",
        },
        empty_message="No customers found",
    )
    if df.empty:
        return

    options = df["name"].tolist()
    selected = st_free_text_select(
        "Select customer",
        options,
        key="customer_select",
        placeholder="Type to search or select",
    )
    if not selected or selected not in options:
        return
    row = df[df["name"] == selected].iloc[0]
    for new_status in workflow.allowed_transitions(workflow.CUSTOMER, row["status"]):
        if st.button(f"Mark {new_status}", key=f"customer_status_{int(row['id'])}_{new_status}"):
            try:
                set_customer_status(conn, int(row["id"]), new_status)
                queue_flash(f"{selected} is now {new_status}")
                st.rerun()
            except ValueError as e:
                st.error(str(e))
