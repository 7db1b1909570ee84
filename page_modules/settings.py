"""Settings page - Admin only."""
import streamlit as st

from core.auth import is_authorized
from core.constants import CURRENCIES, MENU_SETTINGS
from core.services import get_settings, save_settings
from ui.components import access_denied, flash, queue_flash


def _save(conn, updates: dict, message: str) -> None:
    try:
        save_settings(conn, updates)
    except ValueError as e:
        st.error(str(e))
        return
    queue_flash(message)
    st.rerun()


def render(conn, user):
    """Render settings page."""
    if not is_authorized(user, MENU_SETTINGS):
        access_denied()
        return

    st.title("⚙️ Settings")
    flash()
    settings = get_settings(conn)
    pharmacy_tab, billing_tab, alerts_tab, system_tab = st.tabs(
        ["Pharmacy", "Billing", "Notifications", "System"]
    )

    with pharmacy_tab:
        with st.form("pharmacy_settings_form"):
            name = st.text_input("Pharmacy Name", value=settings["pharmacy_name"])
            address = st.text_area("Address", value=settings["pharmacy_address"])
            col1, col2, col3 = st.columns(3)
            phone = col1.text_input("Phone", value=settings["pharmacy_phone"])
            email = col2.text_input("Email", value=settings["pharmacy_email"])
            license_number = col3.text_input("License Number", value=settings["license_number"])
            submitted = st.form_submit_button("💾 Save")
        if submitted:
            _save(
                conn,
                {
                    "pharmacy_name": name.strip(),
                    "pharmacy_address": address.strip(),
                    "pharmacy_phone": phone.strip(),
                    "pharmacy_email": email.strip(),
                    "license_number": license_number.strip(),
                },
                "Pharmacy information saved",
            )

    with billing_tab:
        with st.form("billing_settings_form"):
            col1, col2, col3 = st.columns(3)
            currency = col1.selectbox(
                "Currency",
                CURRENCIES,
                index=CURRENCIES.index(settings["currency"]) if settings["currency"] in CURRENCIES else 0,
            )
            tax_percent = col2.number_input(
                "Tax Rate (%)", min_value=0.0, max_value=99.99, step=0.5,
                value=float(settings["tax_rate"]) * 100,
            )
            discount_limit = col3.number_input(
                "Max Discount (% of subtotal)", min_value=0.0, max_value=100.0, step=1.0,
                value=float(settings["discount_limit"]),
            )
            col1, col2, col3 = st.columns(3)
            sale_prefix = col1.text_input("Sale Number Prefix", value=settings["sale_prefix"])
            invoice_prefix = col2.text_input("Invoice Prefix", value=settings["invoice_prefix"])
            receipt_prefix = col3.text_input("Receipt Prefix", value=settings["receipt_prefix"])
            footer = st.text_input("Receipt Footer", value=settings["print_footer"])
            submitted = st.form_submit_button("💾 Save")
        if submitted:
            _save(
                conn,
                {
                    "currency": currency,
                    "tax_rate": round(tax_percent / 100, 4),
                    "discount_limit": discount_limit,
                    "sale_prefix": sale_prefix.strip() or "SAL",
                    "invoice_prefix": invoice_prefix.strip() or "INV",
                    "receipt_prefix": receipt_prefix.strip() or "REC",
                    "print_footer": footer.strip(),
                },
                "Billing settings saved",
            )

    with alerts_tab:
        with st.form("alert_settings_form"):
            low_stock_alert = st.checkbox("Low stock alerts", value=settings["low_stock_alert"])
            expiry_alert = st.checkbox("Expiry alerts", value=settings["expiry_alert"])
            expiry_days = st.number_input(
                "Warn this many days before expiry", min_value=1, max_value=365, step=1,
                value=int(settings["expiry_alert_days"]),
            )
            submitted = st.form_submit_button("💾 Save")
        if submitted:
            _save(
                conn,
                {
                    "low_stock_alert": low_stock_alert,
                    "expiry_alert": expiry_alert,
                    "expiry_alert_days": int(expiry_days),
                },
                "Notification settings saved",
            )

    with system_tab:
        with st.form("system_settings_form"):
            timeout = st.number_input(
                "Session timeout (minutes)", min_value=5, max_value=480, step=5,
                value=int(settings["session_timeout"]),
            )
            submitted = st.form_submit_button("💾 Save")
        if submitted:
            _save(conn, {"session_timeout": int(timeout)}, "System settings saved")
