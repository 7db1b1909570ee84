"""Reusable UI components."""
from typing import Callable, Dict, Iterable, List

import pandas as pd
import streamlit as st

from core.exports import EXCEL_MIME, to_excel_bytes, to_pdf_bytes

STATUS_ICONS = {
    "Low Stock": "\U0001F534",
    "Medium": "\U0001F7E1",
    "In Stock": "\U0001F7E2",
    "Expired": "⛔",
    "Expiring Soon": "⏳",
    "Completed": "✅",
    "Filled": "✅",
    "Delivered": "✅",
    "Active": "\U0001F7E2",
    "Pending": "\U0001F552",
    "Partial": "\U0001F7E1",
    "Partially Filled": "\U0001F7E1",
    "Refunded": "↩️",
    "Cancelled": "❌",
    "Inactive": "⚪",
}


def badge(status: str) -> str:
    """Status label prefixed with its icon."""
    icon = STATUS_ICONS.get(status)
    return f"{icon} {status}" if icon else str(status)


def search_frame(df: pd.DataFrame, term: str, columns: Iterable[str]) -> pd.DataFrame:
    """Case-insensitive partial search across the given columns."""
    if df.empty or not term:
        return df
    mask = None
    for col in columns:
        if col not in df.columns:
            continue
        col_mask = df[col].astype(str).str.contains(term, case=False, na=False, regex=False)
        mask = col_mask if mask is None else (mask | col_mask)
    if mask is None:
        return df
    return df[mask]


def render_table(df: pd.DataFrame, columns: Dict[str, str], empty_message: str = "Nothing to show") -> None:
    """Show ``df`` with only ``columns`` (raw name -> header), in that order."""
    if df.empty:
        st.info(empty_message)
        return
    display_df = df.copy()
    for c in columns:
        if c not in display_df.columns:
            display_df[c] = ""
    display_df = display_df[list(columns)].rename(columns=columns)
    st.dataframe(display_df, width="stretch", hide_index=True)


def render_export_buttons(df: pd.DataFrame, title: str, file_stem: str, key: str) -> None:
    """Excel and PDF download buttons for a table."""
    if df.empty:
        return
    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            "Export to Excel",
            data=to_excel_bytes({title[:31]: df}),
            file_name=f"{file_stem}.xlsx",
            mime=EXCEL_MIME,
            key=f"{key}_xlsx",
        )
    with col2:
        st.download_button(
            "Export to PDF",
            data=to_pdf_bytes(df, title),
            file_name=f"{file_stem}.pdf",
            mime="application/pdf",
            key=f"{key}_pdf",
        )


def flash(message_key: str = "flash_message") -> None:
    """Show a toast queued before the last rerun."""
    msg = st.session_state.pop(message_key, None)
    if msg:
        st.toast(msg, icon="✅")


def queue_flash(message: str, message_key: str = "flash_message") -> None:
    st.session_state[message_key] = message


def money(value) -> str:
    try:
        return f"${float(value):,.2f}"
    except (TypeError, ValueError):
        return "$0.00"


def access_denied() -> None:
    st.error("⛔ Access denied. You do not have permission to view this page.")


def options_from(df: pd.DataFrame, column: str) -> List[str]:
    """Sorted distinct non-empty values of a column."""
    if df.empty or column not in df.columns:
        return []
    values = {str(v).strip() for v in df[column].dropna().unique() if str(v).strip()}
    return sorted(values, key=str.casefold)


def action_button(label: str, key: str, action: Callable[[], bool], done: str, failed: str) -> None:
    """Button running a success-flag action; flashes ``done`` and reruns on success."""
    if st.button(label, key=key):
        if action():
            queue_flash(done)
            st.rerun()
        else:
            st.error(failed)
