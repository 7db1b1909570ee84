"""Sign-in, sign-up, session persistence and page authorization.

The logged-in user is a plain dict (id, email, full_name, role) kept in a
caller-supplied mapping under ``state["user"]``. In the app that mapping is
``st.session_state``; everything below except the form works on any dict.
"""
import hashlib
import json
import logging
import os
import re
import secrets
from datetime import datetime, timedelta
from typing import List, MutableMapping, Optional

import streamlit as st

from core.config import SESSION_DIR, SESSION_DURATION_DAYS, local_now
from core.constants import PAGE_ROLES, ROLE_CASHIER, ROLES
from core.services import insert_user, is_postgres

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
SESSION_KEYS = ("id", "email", "full_name", "role")
TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]{16,}$")
# Query parameter carrying the browser's session token
SESSION_PARAM = "sid"


def hash_password(password: str) -> str:
    """Hash password using SHA-256."""
    return hashlib.sha256(password.encode()).hexdigest()


# ============================================================================
# Session files (one per browser, survive reloads)
# ============================================================================

def new_session_token() -> str:
    return secrets.token_urlsafe(24)


def session_path(token: str, directory: str = SESSION_DIR) -> Optional[str]:
    """File holding the session for ``token``, or None for a malformed token."""
    if not token or not TOKEN_RE.match(token):
        return None
    return os.path.join(directory, f"{token}.json")


def save_session(user: dict, token: str, remember: bool = False, directory: str = SESSION_DIR) -> None:
    """Save user session to the browser's own file."""
    path = session_path(token, directory)
    if path is None:
        raise ValueError("Invalid session token")
    session_data = {key: user.get(key) for key in SESSION_KEYS}
    session_data["remember"] = bool(remember)
    session_data["expires"] = None if remember else (
        local_now() + timedelta(days=SESSION_DURATION_DAYS)
    ).isoformat()
    try:
        os.makedirs(directory, exist_ok=True)
        with open(path, "w") as f:
            json.dump(session_data, f)
    except OSError:
        logger.exception("Could not write session file %s", path)


def load_session(token: str, directory: str = SESSION_DIR) -> Optional[dict]:
    """Load the browser's saved session if valid, else None."""
    path = session_path(token, directory)
    if path is None or not os.path.exists(path):
        return None
    try:
        with open(path, "r") as f:
            session_data = json.load(f)
        expires_raw = session_data.get("expires")
        if not session_data.get("remember") and expires_raw:
            if local_now() > datetime.fromisoformat(expires_raw):
                clear_session(token, directory)
                return None
        return {key: session_data[key] for key in SESSION_KEYS}
    except (OSError, ValueError, KeyError, TypeError):
        logger.warning("Discarding unreadable session file %s", path)
        clear_session(token, directory)
        return None


def clear_session(token: str, directory: str = SESSION_DIR) -> None:
    """Delete the browser's session file."""
    path = session_path(token, directory)
    if path is None:
        return
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError:
        logger.exception("Could not remove session file %s", path)


# ============================================================================
# Users
# ============================================================================

def get_db_user(conn, email: str) -> Optional[dict]:
    """Get user from database by email (case-insensitive)."""
    email = (email or "").strip().lower()
    placeholder = "%s" if is_postgres(conn) else "?"
    cur = conn.cursor()
    cur.execute(
        f"SELECT id, email, password_hash, full_name, role, status FROM users WHERE LOWER(email) = {placeholder}",
        (email,),
    )
    row = cur.fetchone()
    if not row:
        return None
    return {
        "id": row[0],
        "email": row[1],
        "password_hash": row[2],
        "full_name": row[3],
        "role": row[4],
        "status": row[5],
    }


def verify_login(conn, email: str, password: str) -> Optional[dict]:
    """Return the session user for valid credentials of an approved account."""
    user = get_db_user(conn, email)
    if user is None or user["status"] != "approved":
        return None
    if hash_password(password or "") != user["password_hash"]:
        return None
    return {key: user[key] for key in SESSION_KEYS}


def signup_user(conn, email: str, password: str, full_name: str, role: str = ROLE_CASHIER) -> tuple:
    """Create new pending user account.
    Returns: (success: bool, message: str)
    """
    email = (email or "").strip().lower()
    full_name = (full_name or "").strip()
    if not email or not password or not full_name:
        return False, "All fields are required"

    if not EMAIL_RE.match(email):
        return False, "Enter a valid email address"

    if len(password) < 6:
        return False, "Password must be at least 6 characters"

    if role not in ROLES:
        return False, f"Unknown role: {role}"

    if get_db_user(conn, email):
        return False, "An account with this email already exists"

    try:
        insert_user(conn, email, hash_password(password), full_name, role, status="pending")
    except Exception as e:
        logger.exception("Failed to create account for %s", email)
        return False, f"Error creating account: {e}"
    return True, "Account created! Waiting for admin approval."


# ============================================================================
# Session object
# ============================================================================

def sign_in(state: MutableMapping, user: dict, remember: bool = False, directory: str = SESSION_DIR) -> str:
    """Sign ``user`` in on this browser and return its session token."""
    token = new_session_token()
    state["user"] = dict(user)
    state["session_token"] = token
    save_session(user, token, remember=remember, directory=directory)
    logger.info("User %s signed in as %s", user["email"], user["role"])
    return token


def sign_out(state: MutableMapping, directory: str = SESSION_DIR) -> None:
    """Clear authentication session."""
    user = state.pop("user", None)
    token = state.pop("session_token", None)
    if token:
        clear_session(token, directory)
    if user:
        logger.info("User %s signed out", user.get("email"))


def _refresh_user(conn, user: dict) -> Optional[dict]:
    """Current account record for a session user, if it may still sign in."""
    db_user = get_db_user(conn, user.get("email"))
    if db_user is None or db_user["status"] != "approved" or db_user["id"] != user.get("id"):
        return None
    return {key: db_user[key] for key in SESSION_KEYS}


def restore_session(conn, state: MutableMapping, token: Optional[str] = None, directory: str = SESSION_DIR) -> bool:
    """Check if user is authenticated, restoring this browser's saved session if needed.

    The account is re-read on every call, so deleted, rejected or re-roled
    users lose their old access at once.
    """
    user = state.get("user")
    if not user and token:
        user = load_session(token, directory)
        if user:
            state["session_token"] = token
    if not user:
        return False

    fresh = _refresh_user(conn, user)
    if fresh is None:
        logger.info("Session for %s is no longer valid", user.get("email"))
        state["user"] = user
        sign_out(state, directory)
        return False
    state["user"] = fresh
    return True


def current_user(state: MutableMapping) -> Optional[dict]:
    return state.get("user")


# ============================================================================
# Authorization
# ============================================================================

def is_authorized(user: Optional[dict], page: str) -> bool:
    if not user:
        return False
    return user.get("role") in PAGE_ROLES.get(page, [])


def allowed_pages(role: Optional[str]) -> List[str]:
    """Pages the role may open, in menu order."""
    return [page for page, roles in PAGE_ROLES.items() if role in roles]


# ============================================================================
# Login form
# ============================================================================

def login_form(conn, state: MutableMapping) -> None:
    """Display login and signup forms."""
    if "show_signup" not in state:
        state["show_signup"] = False

    st.title("\U0001F48A PharmaCare")
    if not state["show_signup"]:
        st.markdown("### \U0001F510 Login")
        with st.form("login_form", clear_on_submit=False):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            remember_me = st.checkbox("Remember me on this device", value=True)
            submit = st.form_submit_button("Login", width="stretch")

            if submit:
                if email and password:
                    user = verify_login(conn, email, password)
                    if user:
                        st.query_params[SESSION_PARAM] = sign_in(state, user, remember=remember_me)
                        st.toast("Welcome back to PharmaCare Management System", icon="\U0001F44B")
                        st.rerun()
                    else:
                        st.error("❌ Invalid email or password")
                else:
                    st.warning("⚠️ Please enter both email and password")

        if st.button("\U0001F4DD Don't have an account? Sign up here"):
            state["show_signup"] = True
            st.rerun()

    else:
        st.markdown("### \U0001F4DD Sign Up")
        with st.form("signup_form", clear_on_submit=False):
            new_email = st.text_input("Email", key="signup_email")
            new_name = st.text_input("Full Name", key="signup_name")
            new_role = st.selectbox("Role", [r for r in ROLES if r != "admin"], key="signup_role")
            new_password = st.text_input("Choose Password", type="password", key="signup_password")
            confirm_password = st.text_input("Confirm Password", type="password", key="signup_confirm")
            signup_submit = st.form_submit_button("Sign Up", width="stretch")

            if signup_submit:
                if new_password != confirm_password:
                    st.error("❌ Passwords don't match")
                else:
                    success, message = signup_user(conn, new_email, new_password, new_name, new_role)
                    if success:
                        st.success(f"✅ {message}")
                    else:
                        st.error(f"❌ {message}")

        if st.button("\U0001F510 Already have an account? Login here"):
            state["show_signup"] = False
            st.rerun()
