"""Purchase orders page."""
import pandas as pd
import streamlit as st
from streamlit_free_text_select import st_free_text_select

from core import workflow
from core.auth import is_authorized
from core.constants import MENU_PURCHASES
from core.services import (
    create_purchase,
    generate_grn,
    get_medicines,
    get_purchase_items,
    get_purchases,
    get_suppliers,
    update_purchase_status,
)
from ui.components import access_denied, badge, flash, money, options_from, queue_flash, render_table, search_frame


def _empty_items() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "medicine_name": pd.Series(dtype=str),
            "quantity": pd.Series(dtype="Int64"),
            "unit_price": pd.Series(dtype=float),
            "batch_number": pd.Series(dtype=str),
            "expiry_date": pd.Series(dtype=str),
        }
    )


def _render_new_order(conn):
    suppliers = get_suppliers(conn)
    medicines = get_medicines(conn)
    supplier_options = options_from(suppliers[suppliers["status"] == "Active"], "name") if not suppliers.empty else []
    medicine_names = medicines["name"].tolist() if not medicines.empty else []

    supplier = st_free_text_select(
        "Supplier *",
        supplier_options,
        key="purchase_supplier",
        placeholder="Type to search or select",
    )
    with st.form("add_purchase_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        po_id = col1.text_input("Purchase Order # *", placeholder="PO-2024-003")
        order_date = col2.date_input("Order Date")
        expected = col3.date_input("Expected Delivery", value=None)
        st.caption("Items (received into stock by medicine name on delivery)")
        items = st.data_editor(
            _empty_items(),
            num_rows="dynamic",
            width="stretch",
            hide_index=True,
            key="purchase_items_editor",
            column_config={
                "medicine_name": st.column_config.SelectboxColumn("Medicine", options=medicine_names),
                "quantity": st.column_config.NumberColumn("Qty", min_value=0, step=1),
                "unit_price": st.column_config.NumberColumn("Unit Cost", min_value=0.0, format="$%.2f"),
                "batch_number": st.column_config.TextColumn("Batch"),
                "expiry_date": st.column_config.TextColumn("Expiry (YYYY-MM-DD)"),
            },
        )
        total_amount = st.number_input(
            "Total Amount ($)", min_value=0.0, step=1.0,
            help="Used only when no items are entered",
        )
        submitted = st.form_submit_button("✅ Create order")
    if submitted:
        lines = items.astype(object).where(items.notna(), None).to_dict("records")
        try:
            create_purchase(
                conn,
                {
                    "purchase_order_id": po_id,
                    "supplier_name": supplier or "",
                    "order_date": order_date,
                    "expected_delivery": expected,
                    "total_amount": total_amount,
                },
                lines,
            )
            queue_flash(f"Purchase order {po_id.strip()} created")
            st.rerun()
        except ValueError as e:
            st.error(str(e))


def render(conn, user):
    """Render the purchases page."""
    if not is_authorized(user, MENU_PURCHASES):
        access_denied()
        return

    st.header("🛍️ Purchases")
    flash()

    with st.expander("➕ New Purchase Order"):
        _render_new_order(conn)

    df = get_purchases(conn)
    search = st.text_input("Search by order number, supplier or status", key="purchase_search")
    df = search_frame(df, search, ["purchase_order_id", "supplier_name", "status", "grn_number"])
    if not df.empty:
        df = df.assign(status_badge=df["status"].map(badge), amount=df["total_amount"].map(money))
    render_table(
        df,
        {
            "purchase_order_id": "PO #",
            "supplier_name": "Supplier",
            "order_date": "Ordered",
            "expected_delivery": "Expected",
            "amount": "Total",
            "grn_number": "GRN",
            "status_badge": "Status",
        },
        empty_message="No purchase orders found",
    )
    if df.empty:
        return

    st.subheader("Order Details")
    selected = st.selectbox("Select order", df["purchase_order_id"].tolist())
    row = df[df["purchase_order_id"] == selected].iloc[0]
    purchase_id = int(row["id"])
    render_table(
        get_purchase_items(conn, purchase_id),
        {
            "medicine_name": "Medicine",
            "quantity": "Qty",
            "unit_price": "Unit Cost",
            "batch_number": "Batch",
            "expiry_date": "Expiry",
        },
        empty_message="No items on this order",
    )

    col1, col2, col3 = st.columns([2, 1, 1])
    next_statuses = workflow.allowed_transitions(workflow.PURCHASE, row["status"])
    if next_statuses:
        new_status = col1.selectbox("Change status", next_statuses, key=f"po_status_{purchase_id}")
        if col2.button("Update", key=f"po_status_btn_{purchase_id}"):
            try:
                update_purchase_status(conn, purchase_id, new_status)
                queue_flash(f"{selected} marked {new_status}")
                st.rerun()
            except ValueError as e:
                st.error(str(e))
    else:
        col1.caption(f"Status: {row['status']} (final)")
    if col3.button("📄 Generate GRN", key=f"po_grn_{purchase_id}"):
        try:
            grn = generate_grn(conn, purchase_id)
            queue_flash(f"GRN {grn} issued for {selected}")
            st.rerun()
        except ValueError as e:
            st.error(str(e))
