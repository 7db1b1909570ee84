"""User Management Page - Admin only."""
import streamlit as st

from core.auth import is_authorized
from core.constants import MENU_USER_MANAGEMENT, ROLES
from core.services import (
    approve_user,
    delete_user,
    get_all_users,
    get_pending_users,
    reject_user,
    update_user_role,
)
from ui.components import access_denied, action_button, flash, render_table

ROLE_EMOJI = {"admin": "🔑", "pharmacist": "💊", "cashier": "💵", "supplier": "🚚"}
ACCOUNT_COLUMNS = {
    "full_name": "Name",
    "email": "Email",
    "role_label": "Role",
    "created_at": "Requested",
    "approved_by": "Approved By",
}


def _with_role_label(df):
    if df.empty:
        return df
    return df.assign(role_label=[f"{ROLE_EMOJI.get(r, '👤')} {str(r).title()}" for r in df["role"]])


def _pick_account(df, label: str, key: str):
    """Selectbox over accounts by email; returns the chosen row."""
    emails = df["email"].tolist()
    chosen = st.selectbox(label, emails, key=key)
    return df[df["email"] == chosen].iloc[0]


def _pending_section(conn, admin_email: str, pending_df) -> None:
    st.header("🕒 Pending Approvals")
    if pending_df.empty:
        st.info("No pending user requests.")
        return
    st.write(f"**{len(pending_df)}** user(s) waiting for approval")
    render_table(_with_role_label(pending_df), ACCOUNT_COLUMNS)

    row = _pick_account(pending_df, "Review request", key="pending_account")
    user_id = int(row["id"])
    col1, col2 = st.columns(2)
    with col1:
        action_button(
            "✅ Approve", f"approve_{user_id}",
            lambda: approve_user(conn, user_id, admin_email),
            done=f"Approved {row['email']}", failed="Failed to approve user",
        )
    with col2:
        action_button(
            "❌ Reject", f"reject_{user_id}",
            lambda: reject_user(conn, user_id),
            done=f"Rejected {row['email']}", failed="Failed to reject user",
        )


def _accounts_section(conn, admin_email: str, active_df) -> None:
    st.header("👥 Active Users")
    if active_df.empty:
        st.info("No active users.")
        return
    render_table(_with_role_label(active_df), ACCOUNT_COLUMNS)

    # Admins cannot change or delete their own account
    others = active_df[active_df["email"] != admin_email]
    if others.empty:
        return
    row = _pick_account(others, "Manage account", key="manage_account")
    user_id = int(row["id"])
    col1, col2 = st.columns(2)
    with col1:
        new_role = st.selectbox(
            "Role",
            ROLES,
            index=ROLES.index(row["role"]) if row["role"] in ROLES else 0,
            key=f"role_{user_id}",
        )
        if new_role != row["role"]:
            action_button(
                "💾 Save role", f"save_role_{user_id}",
                lambda: update_user_role(conn, user_id, new_role),
                done=f"Updated {row['email']} to {new_role}", failed="Failed to update role",
            )
    with col2:
        action_button(
            "🗑️ Delete account", f"delete_{user_id}",
            lambda: delete_user(conn, user_id),
            done=f"Deleted {row['email']}", failed="Failed to delete user",
        )


def render(conn, user):
    """Render user management page."""
    if not is_authorized(user, MENU_USER_MANAGEMENT):
        access_denied()
        return

    st.title("🧑‍💻 User Management")
    flash()

    pending_df = get_pending_users(conn)
    all_users_df = get_all_users(conn)
    active_df = all_users_df[all_users_df["status"] == "approved"] if not all_users_df.empty else all_users_df

    _pending_section(conn, user["email"], pending_df)
    _accounts_section(conn, user["email"], active_df)

    st.header("📊 Statistics")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Users", len(all_users_df))
    with col2:
        st.metric("Active Users", len(active_df))
    with col3:
        st.metric("Pending", len(pending_df))
