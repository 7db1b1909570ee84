"""Sales page: point-of-sale cart and sales history."""
import streamlit as st

from core import workflow
from core.auth import is_authorized
from core.constants import MENU_SALES, SALE_PAYMENT_METHODS
from core.services import create_sale, get_medicines, get_sale_items, get_sales, get_settings, update_sale_status
from core.totals import add_item, check_discount, recompute, remove_item, validate_line_item
from ui.components import access_denied, badge, flash, money, queue_flash, render_table, search_frame

CART_KEY = "sale_items"


def _render_cart(conn, user, settings):
    medicines = get_medicines(conn)
    items = st.session_state.setdefault(CART_KEY, [])

    st.subheader("Customer")
    col1, col2, col3 = st.columns(3)
    customer_name = col1.text_input("Customer Name *", key="sale_customer_name")
    customer_phone = col2.text_input("Phone", key="sale_customer_phone")
    prescription_number = col3.text_input("Prescription # (optional)", key="sale_prescription")

    st.subheader("Add Item")
    if medicines.empty:
        st.info("No medicines in inventory")
    else:
        names = medicines["name"].tolist()
        col1, col2, col3, col4 = st.columns([3, 1, 1, 1])
        selected = col1.selectbox("Medicine", names, key="sale_item_medicine")
        medicine = medicines[medicines["name"] == selected].iloc[0]
        qty = col2.number_input("Qty", min_value=0, step=1, value=1, key="sale_item_qty")
        price = col3.number_input(
            "Unit Price",
            min_value=0.0,
            step=0.01,
            value=float(medicine["selling_price"] or 0),
            key=f"sale_item_price_{int(medicine['id'])}",
        )
        col4.caption(f"In stock: {int(medicine['quantity'] or 0)}")
        if col4.button("➕ Add", key="sale_item_add"):
            item = {
                "medicine_id": int(medicine["id"]),
                "medicine_name": selected,
                "quantity": int(qty),
                "unit_price": float(price),
            }
            try:
                validate_line_item(item)
            except ValueError as e:
                st.error(str(e))
            else:
                st.session_state[CART_KEY] = add_item(items, item)
                st.rerun()

    st.subheader("🛒 Cart")
    if not items:
        st.info("No items added yet")
    for idx, item in enumerate(items):
        col1, col2, col3, col4, col5 = st.columns([3, 1, 1, 1, 1])
        col1.write(item["medicine_name"])
        col2.write(f"x{item['quantity']}")
        col3.write(money(item["unit_price"]))
        col4.write(money(item["total"]))
        if col5.button("🗑️", key=f"sale_item_remove_{idx}"):
            st.session_state[CART_KEY] = remove_item(items, idx)
            st.rerun()

    col1, col2 = st.columns(2)
    discount = col1.number_input("Discount ($)", min_value=0.0, step=0.5, key="sale_discount")
    payment_method = col2.selectbox("Payment Method", SALE_PAYMENT_METHODS, key="sale_payment")

    totals = recompute(items, discount, settings["tax_rate"])
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Subtotal", money(totals["subtotal"]))
    col2.metric(f"Tax ({settings['tax_rate'] * 100:g}%)", money(totals["tax"]))
    col3.metric("Discount", money(totals["discount"]))
    col4.metric("Total", money(totals["total"]))
    try:
        check_discount(totals, discount, settings["discount_limit"])
    except ValueError as e:
        st.warning(str(e))

    col1, col2 = st.columns(2)
    if col1.button("✅ Complete Sale", type="primary", key="sale_complete"):
        try:
            create_sale(
                conn,
                {
                    "customer_name": customer_name,
                    "customer_phone": customer_phone.strip(),
                    "prescription_number": prescription_number.strip(),
                    "payment_method": payment_method,
                    "discount": discount,
                    "cashier": user["full_name"],
                },
                items,
                tax_rate=settings["tax_rate"],
                discount_limit=settings["discount_limit"],
                sale_prefix=settings["sale_prefix"],
            )
        except ValueError as e:
            st.error(str(e))
        else:
            st.session_state[CART_KEY] = []
            queue_flash(f"Sale completed for {customer_name.strip()}: {money(totals['total'])}")
            st.rerun()
    if col2.button("Clear Cart", key="sale_clear"):
        st.session_state[CART_KEY] = []
        st.rerun()


def _render_history(conn):
    sales = get_sales(conn)
    search = st.text_input("Search by sale number, customer or status", key="sales_search")
    sales = search_frame(sales, search, ["sale_number", "customer_name", "status", "payment_method"])
    if not sales.empty:
        sales = sales.assign(status_badge=sales["status"].map(badge))
    render_table(
        sales,
        {
            "sale_number": "Sale #",
            "customer_name": "Customer",
            "sale_date": "Date",
            "sale_time": "Time",
            "payment_method": "Payment",
            "subtotal": "Subtotal",
            "tax": "Tax",
            "discount": "Discount",
            "total": "Total",
            "status_badge": "Status",
            "cashier": "Cashier",
        },
        empty_message="No sales recorded",
    )
    if sales.empty:
        return

    st.subheader("Sale Details")
    selected = st.selectbox("Select sale", sales["sale_number"].tolist(), key="sale_detail_select")
    sale = sales[sales["sale_number"] == selected].iloc[0]
    render_table(
        get_sale_items(conn, int(sale["id"])),
        {"medicine_name": "Medicine", "quantity": "Qty", "unit_price": "Unit Price", "total": "Total"},
        empty_message="No items on this sale",
    )

    next_statuses = workflow.allowed_transitions(workflow.SALE, sale["status"])
    if not next_statuses:
        st.caption(f"Status: {sale['status']} (final)")
        return
    col1, col2 = st.columns([3, 1])
    new_status = col1.selectbox("Change status", next_statuses, key=f"sale_status_{int(sale['id'])}")
    if col2.button("Update", key=f"sale_status_btn_{int(sale['id'])}"):
        try:
            update_sale_status(conn, int(sale["id"]), new_status)
            queue_flash(f"{selected} marked {new_status}")
            st.rerun()
        except ValueError as e:
            st.error(str(e))


def render(conn, user):
    """Render the sales page."""
    if not is_authorized(user, MENU_SALES):
        access_denied()
        return

    st.header("🛒 Sales")
    flash()
    settings = get_settings(conn)
    new_tab, history_tab = st.tabs(["New Sale", "Sales History"])
    with new_tab:
        _render_cart(conn, user, settings)
    with history_tab:
        _render_history(conn)
