"""
Page tests, run headless with Streamlit's AppTest.

Verifies:
- User management approves and re-roles accounts through its buttons
- Pages use the current width argument
"""

import sqlite3
from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from core.auth import signup_user, verify_login
from core.seed import seed_demo_data
from core.services import get_all_users, init_db

ROOT = Path(__file__).resolve().parent.parent


def _user_management_app(db_path):
    import sqlite3

    from core.services import init_db
    from page_modules import user_management

    conn = sqlite3.connect(db_path)
    init_db(conn)
    admin = {"id": 1, "email": "admin@pharmacy.com", "full_name": "Admin User", "role": "admin"}
    user_management.render(conn, admin)


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "pharmacare.db")
    conn = sqlite3.connect(path)
    init_db(conn)
    seed_demo_data(conn)
    conn.close()
    return path


def _user_id(db_path, email):
    conn = sqlite3.connect(db_path)
    try:
        users = get_all_users(conn)
        return int(users.loc[users["email"] == email, "id"].iloc[0])
    finally:
        conn.close()


# =============================================================================
# USER MANAGEMENT
# =============================================================================


class TestUserManagementPage:

    def test_approve_pending_account(self, db_path):
        conn = sqlite3.connect(db_path)
        assert signup_user(conn, "new@pharmacy.com", "secret1", "New Person", "pharmacist")[0]
        conn.close()
        user_id = _user_id(db_path, "new@pharmacy.com")

        at = AppTest.from_function(_user_management_app, args=(db_path,)).run()
        assert not at.exception
        assert at.selectbox(key="pending_account").value == "new@pharmacy.com"

        at.button(key=f"approve_{user_id}").click().run()
        assert not at.exception

        conn = sqlite3.connect(db_path)
        try:
            assert verify_login(conn, "new@pharmacy.com", "secret1")["role"] == "pharmacist"
        finally:
            conn.close()

    def test_change_role(self, db_path):
        cashier_id = _user_id(db_path, "cashier@pharmacy.com")
        at = AppTest.from_function(_user_management_app, args=(db_path,)).run()
        assert "admin@pharmacy.com" not in at.selectbox(key="manage_account").options

        at.selectbox(key="manage_account").set_value("cashier@pharmacy.com").run()
        at.selectbox(key=f"role_{cashier_id}").set_value("pharmacist").run()
        at.button(key=f"save_role_{cashier_id}").click().run()
        assert not at.exception

        conn = sqlite3.connect(db_path)
        try:
            assert verify_login(conn, "cashier@pharmacy.com", "cashier123")["role"] == "pharmacist"
        finally:
            conn.close()


# =============================================================================
# LAYOUT
# =============================================================================


def test_no_deprecated_container_width():
    sources = [ROOT / "app.py", *(ROOT / "core").glob("*.py"), *(ROOT / "ui").glob("*.py"),
               *(ROOT / "page_modules").glob("*.py")]
    offenders = [p.name for p in sources if "use_container_width" in p.read_text(encoding="utf-8")]
    assert offenders == []
