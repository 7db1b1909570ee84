"""Inventory page: medicine list, stock levels and maintenance."""
from datetime import date, datetime

import pandas as pd
import streamlit as st
from streamlit_free_text_select import st_free_text_select

from core.auth import is_authorized
from core.constants import MEDICINE_CATEGORIES, MENU_INVENTORY, ROLE_ADMIN
from core.services import (
    add_medicine,
    adjust_stock,
    delete_medicine,
    get_medicines,
    get_settings,
    restore_medicine,
    update_medicine,
)
from ui.components import (
    access_denied,
    badge,
    flash,
    options_from,
    queue_flash,
    render_export_buttons,
    render_table,
    search_frame,
)

TABLE_COLUMNS = {
    "name": "Medicine",
    "generic_name": "Generic Name",
    "category": "Category",
    "batch_number": "Batch",
    "quantity": "Stock",
    "minimum_stock": "Min Stock",
    "selling_price": "Price",
    "expiry_date": "Expiry",
    "stock_badge": "Stock Status",
    "expiry_badge": "Expiry Status",
}
EXPORT_COLUMNS = [
    "name", "generic_name", "category", "manufacturer", "batch_number", "quantity",
    "minimum_stock", "unit_price", "selling_price", "expiry_date", "stock_status", "expiry_status",
]


def _parse_date(value):
    if not value:
        return None
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def _medicine_fields(prefix: str, categories, defaults=None) -> dict:
    """Inputs shared by the add and edit forms."""
    defaults = {k: v for k, v in (defaults or {}).items() if v is not None and not pd.isna(v)}
    col1, col2 = st.columns(2)
    with col1:
        name = st.text_input("Medicine Name *", value=defaults.get("name", ""), key=f"{prefix}_name")
        generic = st.text_input("Generic Name", value=defaults.get("generic_name") or "", key=f"{prefix}_generic")
        if defaults:
            category = st.selectbox(
                "Category *",
                categories,
                index=categories.index(defaults["category"]) if defaults.get("category") in categories else 0,
                key=f"{prefix}_category",
            )
        else:
            category = st_free_text_select(
                "Category *",
                categories,
                key=f"{prefix}_category",
                placeholder="Type to search or add",
            )
        manufacturer = st.text_input(
            "Manufacturer", value=defaults.get("manufacturer") or "", key=f"{prefix}_manufacturer"
        )
        batch = st.text_input("Batch Number", value=defaults.get("batch_number") or "", key=f"{prefix}_batch")
    with col2:
        unit_price = st.number_input(
            "Unit Price ($)", min_value=0.0, step=0.01,
            value=float(defaults.get("unit_price") or 0.0), key=f"{prefix}_unit_price",
        )
        selling_price = st.number_input(
            "Selling Price ($)", min_value=0.0, step=0.01,
            value=float(defaults.get("selling_price") or 0.0), key=f"{prefix}_selling_price",
        )
        quantity = st.number_input(
            "Quantity", min_value=0, step=1,
            value=int(defaults.get("quantity") or 0), key=f"{prefix}_quantity",
            disabled=bool(defaults),
            help="Use Adjust Stock to change the level of an existing medicine" if defaults else None,
        )
        minimum = st.number_input(
            "Minimum Stock", min_value=0, step=1,
            value=int(defaults.get("minimum_stock") or 0), key=f"{prefix}_minimum",
        )
        expiry = st.date_input(
            "Expiry Date", value=_parse_date(defaults.get("expiry_date")), key=f"{prefix}_expiry",
            min_value=date(2000, 1, 1),
        )
    description = st.text_area("Description", value=defaults.get("description") or "", key=f"{prefix}_description")

    data = {
        "name": name,
        "generic_name": generic.strip(),
        "category": (category or "").strip(),
        "manufacturer": manufacturer.strip(),
        "batch_number": batch.strip(),
        "unit_price": unit_price,
        "selling_price": selling_price,
        "minimum_stock": int(minimum),
        "expiry_date": expiry.isoformat() if expiry else None,
        "description": description.strip(),
    }
    if not defaults:
        data["quantity"] = int(quantity)
    return data


def render(conn, user):
    """Render the inventory page."""
    if not is_authorized(user, MENU_INVENTORY):
        access_denied()
        return

    st.header("📦 Inventory")
    flash()
    settings = get_settings(conn)
    is_admin = user["role"] == ROLE_ADMIN
    show_inactive = is_admin and st.checkbox("Show deleted medicines")
    df = get_medicines(
        conn, include_inactive=show_inactive, alert_days=settings["expiry_alert_days"]
    )

    search = st.text_input("Search by name, generic name, category or batch")
    df = search_frame(df, search, ["name", "generic_name", "category", "batch_number", "manufacturer"])
    if not df.empty:
        df = df.assign(
            stock_badge=df["stock_status"].map(badge),
            expiry_badge=df["expiry_status"].map(badge),
        )
    render_table(df, TABLE_COLUMNS, empty_message="No medicines found")
    if not df.empty:
        render_export_buttons(df[EXPORT_COLUMNS], "Inventory", "inventory", key="inventory_export")

    all_df = get_medicines(conn, include_inactive=True)
    categories = sorted(set(MEDICINE_CATEGORIES) | set(options_from(all_df, "category")), key=str.casefold)

    add_tab, edit_tab, stock_tab = st.tabs(["➕ Add Medicine", "✏️ Edit Medicine", "📦 Adjust Stock"])

    with add_tab:
        data = _medicine_fields("add", categories)
        if st.button("✅ Add Medicine", key="add_medicine_btn"):
            try:
                add_medicine(conn, data)
                queue_flash(f"Medicine {data['name'].strip()} added to inventory")
                st.rerun()
            except ValueError as e:
                st.error(str(e))

    names = all_df["name"].tolist() if not all_df.empty else []

    with edit_tab:
        if not names:
            st.info("No medicines to edit")
        else:
            selected = st.selectbox("Select medicine", names, key="edit_medicine_select")
            row = all_df[all_df["name"] == selected].iloc[0].to_dict()
            medicine_id = int(row["id"])
            data = _medicine_fields(f"edit_{medicine_id}", categories, defaults=row)
            col1, col2 = st.columns(2)
            with col1:
                if st.button("💾 Save Changes", key=f"save_medicine_{medicine_id}"):
                    try:
                        update_medicine(conn, medicine_id, data)
                        queue_flash("Medicine updated")
                        st.rerun()
                    except ValueError as e:
                        st.error(str(e))
            with col2:
                if is_admin:
                    if int(row.get("isactive", 1) or 0):
                        if st.button("🗑️ Delete", key=f"delete_medicine_{medicine_id}"):
                            delete_medicine(conn, medicine_id)
                            queue_flash(f"{selected} deleted")
                            st.rerun()
                    elif st.button("♻️ Restore", key=f"restore_medicine_{medicine_id}"):
                        restore_medicine(conn, medicine_id)
                        queue_flash(f"{selected} restored")
                        st.rerun()

    with stock_tab:
        if not names:
            st.info("No medicines available")
        else:
            with st.form("adjust_stock_form", clear_on_submit=True):
                selected = st.selectbox("Medicine", names)
                direction = st.radio("Adjustment", ["Add stock", "Remove stock"], horizontal=True)
                qty = st.number_input("Quantity", min_value=1, step=1)
                submitted = st.form_submit_button("Apply")
            if submitted:
                medicine_id = int(all_df.loc[all_df["name"] == selected, "id"].iloc[0])
                delta = int(qty) if direction == "Add stock" else -int(qty)
                try:
                    new_stock = adjust_stock(conn, medicine_id, delta)
                    queue_flash(f"{selected}: stock is now {new_stock}")
                    st.rerun()
                except ValueError as e:
                    st.error(str(e))
