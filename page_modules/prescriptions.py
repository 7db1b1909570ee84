"""Prescriptions page."""
import pandas as pd
import streamlit as st

from core import workflow
from core.auth import is_authorized
from core.constants import MENU_PRESCRIPTIONS
from core.services import (
    add_prescription,
    get_prescription_items,
    get_prescriptions,
    update_prescription_status,
)
from ui.components import access_denied, badge, flash, queue_flash, render_table, search_frame

MEDICATION_COLUMNS = ["name", "dosage", "frequency", "duration", "quantity"]


def _empty_medications() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "name": pd.Series(dtype=str),
            "dosage": pd.Series(dtype=str),
            "frequency": pd.Series(dtype=str),
            "duration": pd.Series(dtype=str),
            "quantity": pd.Series(dtype="Int64"),
        }
    )


def _render_new_prescription(conn):
    with st.form("add_prescription_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        number = col1.text_input("Prescription # *", placeholder="RX004")
        patient = col2.text_input("Patient Name *")
        doctor = col3.text_input("Doctor Name *")
        col1, col2 = st.columns(2)
        date_issued = col1.date_input("Date Issued")
        insurance = col2.text_input("Insurance")
        instructions = st.text_area("Instructions")
        st.caption("Medications")
        medications = st.data_editor(
            _empty_medications(),
            num_rows="dynamic",
            width="stretch",
            hide_index=True,
            key="prescription_medications",
            column_config={
                "name": st.column_config.TextColumn("Medication"),
                "dosage": st.column_config.TextColumn("Dosage"),
                "frequency": st.column_config.TextColumn("Frequency"),
                "duration": st.column_config.TextColumn("Duration"),
                "quantity": st.column_config.NumberColumn("Qty", min_value=0, step=1),
            },
        )
        submitted = st.form_submit_button("✅ Save prescription")
    if submitted:
        lines = medications.astype(object).where(medications.notna(), None).to_dict("records")
        try:
            add_prescription(
                conn,
                {
                    "prescription_number": number,
                    "patient_name": patient,
                    "doctor_name": doctor,
                    "date_issued": date_issued,
                    "insurance": insurance.strip(),
                    "instructions": instructions.strip(),
                },
                lines,
            )
            queue_flash(f"Prescription {number.strip()} saved")
            st.rerun()
        except ValueError as e:
            st.error(str(e))


def render(conn, user):
    """Render the prescriptions page."""
    if not is_authorized(user, MENU_PRESCRIPTIONS):
        access_denied()
        return

    st.header("📄 Prescriptions")
    flash()

    with st.expander("➕ New Prescription"):
        _render_new_prescription(conn)

    df = get_prescriptions(conn)
    col1, col2 = st.columns([3, 1])
    search = col1.text_input("Search by number, patient or doctor", key="prescription_search")
    status_filter = col2.selectbox("Status", ["All"] + workflow.statuses(workflow.PRESCRIPTION))
    df = search_frame(df, search, ["prescription_number", "patient_name", "doctor_name"])
    if not df.empty and status_filter != "All":
        df = df[df["status"] == status_filter]
    if not df.empty:
        df = df.assign(status_badge=df["status"].map(badge))
    render_table(
        df,
        {
            "prescription_number": "Rx #",
            "patient_name": "Patient",
            "doctor_name": "Doctor",
            "date_issued": "Issued",
            "insurance": "Insurance",
            "total_amount": "Amount",
            "status_badge": "Status",
        },
        empty_message="No prescriptions found",
    )
    if df.empty:
        return

    st.subheader("Prescription Details")
    selected = st.selectbox("Select prescription", df["prescription_number"].tolist())
    row = df[df["prescription_number"] == selected].iloc[0]
    if row.get("instructions"):
        st.caption(f"Instructions: {row['instructions']}")
    items = get_prescription_items(conn, int(row["id"]))
    render_table(
        items,
        {c: c.title() for c in MEDICATION_COLUMNS},
        empty_message="No medications listed",
    )

    next_statuses = workflow.allowed_transitions(workflow.PRESCRIPTION, row["status"])
    if not next_statuses:
        st.caption(f"Status: {row['status']} (final)")
        return
    col1, col2 = st.columns([3, 1])
    new_status = col1.selectbox("Change status", next_statuses, key=f"rx_status_{int(row['id'])}")
    if col2.button("Update", key=f"rx_status_btn_{int(row['id'])}"):
        try:
            update_prescription_status(conn, int(row["id"]), new_status)
            queue_flash(f"{selected} marked {new_status}")
            st.rerun()
        except ValueError as e:
            st.error(str(e))
