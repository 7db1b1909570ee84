"""
Authentication and authorization tests.

Verifies:
- Demo users sign in; wrong passwords and pending accounts do not
- Sign-up creates a pending account and validates input
- The session object lives in the mapping it is given and survives via its own browser's session file
- Restored sessions follow the current account record
- Page access follows the role table
"""

import json

import pytest

from core.auth import (
    allowed_pages,
    clear_session,
    current_user,
    is_authorized,
    load_session,
    new_session_token,
    restore_session,
    save_session,
    sign_in,
    sign_out,
    signup_user,
    verify_login,
)
from core.constants import (
    MENU_CUSTOMERS,
    MENU_DASHBOARD,
    MENU_EXPENSES,
    MENU_INVENTORY,
    MENU_REPORTS,
    MENU_SALES,
    MENU_SETTINGS,
    MENU_USER_MANAGEMENT,
    PAGE_ROLES,
)
from core.services import approve_user, delete_user, get_pending_users, update_user_role


# =============================================================================
# LOGIN
# =============================================================================


class TestLogin:

    @pytest.mark.parametrize("email,password,role", [
        ("admin@pharmacy.com", "admin123", "admin"),
        ("pharmacist@pharmacy.com", "pharma123", "pharmacist"),
        ("cashier@pharmacy.com", "cashier123", "cashier"),
    ])
    def test_demo_users(self, seeded_conn, email, password, role):
        user = verify_login(seeded_conn, email, password)
        assert user is not None
        assert user["role"] == role
        assert set(user) == {"id", "email", "full_name", "role"}

    def test_email_is_case_insensitive(self, seeded_conn):
        assert verify_login(seeded_conn, "Admin@Pharmacy.com", "admin123") is not None

    def test_wrong_password(self, seeded_conn):
        assert verify_login(seeded_conn, "admin@pharmacy.com", "nope") is None

    def test_unknown_user(self, seeded_conn):
        assert verify_login(seeded_conn, "ghost@pharmacy.com", "admin123") is None


# =============================================================================
# SIGN-UP
# =============================================================================


class TestSignup:

    def test_new_account_waits_for_approval(self, conn):
        ok, message = signup_user(conn, "new@pharmacy.com", "secret1", "New Person", "pharmacist")
        assert ok
        assert "approval" in message
        assert verify_login(conn, "new@pharmacy.com", "secret1") is None

        pending = get_pending_users(conn)
        assert pending["email"].tolist() == ["new@pharmacy.com"]
        assert approve_user(conn, int(pending["id"].iloc[0]), "admin@pharmacy.com")
        assert verify_login(conn, "new@pharmacy.com", "secret1")["role"] == "pharmacist"

    @pytest.mark.parametrize("email,password,name,role,expected", [
        ("", "secret1", "X", "cashier", "All fields are required"),
        ("bad-email", "secret1", "X", "cashier", "Enter a valid email address"),
        ("x@y.com", "123", "X", "cashier", "Password must be at least 6 characters"),
        ("x@y.com", "secret1", "X", "owner", "Unknown role: owner"),
    ])
    def test_invalid_input(self, conn, email, password, name, role, expected):
        ok, message = signup_user(conn, email, password, name, role)
        assert not ok
        assert message == expected

    def test_duplicate_email(self, seeded_conn):
        ok, message = signup_user(seeded_conn, "ADMIN@pharmacy.com", "secret1", "Someone", "cashier")
        assert not ok
        assert message == "An account with this email already exists"


# =============================================================================
# SESSION
# =============================================================================


class TestSession:

    def test_sign_in_and_out(self, seeded_conn, tmp_path):
        directory = str(tmp_path)
        state = {}
        user = verify_login(seeded_conn, "cashier@pharmacy.com", "cashier123")

        token = sign_in(state, user, directory=directory)
        assert current_user(state) == user
        assert load_session(token, directory) == user

        sign_out(state, directory=directory)
        assert current_user(state) is None
        assert load_session(token, directory) is None

    def test_restore_from_file(self, seeded_conn, tmp_path):
        directory = str(tmp_path)
        user = verify_login(seeded_conn, "admin@pharmacy.com", "admin123")
        token = new_session_token()
        save_session(user, token, remember=True, directory=directory)

        state = {}
        assert restore_session(seeded_conn, state, token=token, directory=directory)
        assert current_user(state) == user
        assert state["session_token"] == token

    def test_no_session(self, seeded_conn, tmp_path):
        state = {}
        assert not restore_session(seeded_conn, state, token=new_session_token(), directory=str(tmp_path))
        assert not restore_session(seeded_conn, state, directory=str(tmp_path))
        assert current_user(state) is None

    def test_other_browser_is_not_signed_in(self, seeded_conn, tmp_path):
        directory = str(tmp_path)
        admin_tab, other_browser = {}, {}
        token = sign_in(admin_tab, verify_login(seeded_conn, "admin@pharmacy.com", "admin123"),
                        remember=True, directory=directory)

        assert not restore_session(seeded_conn, other_browser, directory=directory)
        assert not restore_session(seeded_conn, other_browser, token=new_session_token(), directory=directory)
        assert current_user(other_browser) is None
        assert restore_session(seeded_conn, {}, token=token, directory=directory)

    @pytest.mark.parametrize("token", ["../../etc/passwd", "short", "", None])
    def test_malformed_token_is_refused(self, seeded_conn, tmp_path, token):
        assert not restore_session(seeded_conn, {}, token=token, directory=str(tmp_path))

    def test_deleted_user_loses_saved_session(self, seeded_conn, tmp_path):
        directory = str(tmp_path)
        cashier = verify_login(seeded_conn, "cashier@pharmacy.com", "cashier123")
        token = sign_in({}, cashier, remember=True, directory=directory)
        assert delete_user(seeded_conn, cashier["id"])

        state = {}
        assert not restore_session(seeded_conn, state, token=token, directory=directory)
        assert current_user(state) is None
        assert load_session(token, directory) is None

    def test_deleted_user_loses_live_session(self, seeded_conn, tmp_path):
        directory = str(tmp_path)
        state = {}
        cashier = verify_login(seeded_conn, "cashier@pharmacy.com", "cashier123")
        sign_in(state, cashier, directory=directory)
        assert delete_user(seeded_conn, cashier["id"])

        assert not restore_session(seeded_conn, state, directory=directory)
        assert current_user(state) is None

    def test_role_comes_from_the_database(self, seeded_conn, tmp_path):
        directory = str(tmp_path)
        pharmacist = verify_login(seeded_conn, "pharmacist@pharmacy.com", "pharma123")
        token = sign_in({}, pharmacist, remember=True, directory=directory)
        assert update_user_role(seeded_conn, pharmacist["id"], "cashier")

        state = {}
        assert restore_session(seeded_conn, state, token=token, directory=directory)
        assert current_user(state)["role"] == "cashier"
        assert not is_authorized(current_user(state), MENU_INVENTORY)

    def test_tampered_role_is_ignored(self, seeded_conn, tmp_path):
        directory = str(tmp_path)
        cashier = verify_login(seeded_conn, "cashier@pharmacy.com", "cashier123")
        token = new_session_token()
        save_session(dict(cashier, role="admin"), token, remember=True, directory=directory)

        state = {}
        assert restore_session(seeded_conn, state, token=token, directory=directory)
        assert current_user(state)["role"] == "cashier"

    def test_expired_session_is_discarded(self, tmp_path):
        token = new_session_token()
        path = tmp_path / f"{token}.json"
        path.write_text(json.dumps({
            "id": 1, "email": "a@b.com", "full_name": "A", "role": "admin",
            "remember": False, "expires": "2000-01-01T00:00:00+00:00",
        }))
        assert load_session(token, str(tmp_path)) is None
        assert not path.exists()

    def test_corrupt_session_is_discarded(self, tmp_path):
        token = new_session_token()
        path = tmp_path / f"{token}.json"
        path.write_text("{not json")
        assert load_session(token, str(tmp_path)) is None
        assert not path.exists()

    def test_clear_missing_file_is_harmless(self, tmp_path):
        clear_session(new_session_token(), str(tmp_path))

    def test_each_sign_in_gets_its_own_token(self, seeded_conn, tmp_path):
        user = verify_login(seeded_conn, "admin@pharmacy.com", "admin123")
        first = sign_in({}, user, directory=str(tmp_path))
        second = sign_in({}, user, directory=str(tmp_path))
        assert first != second


# =============================================================================
# AUTHORIZATION
# =============================================================================


class TestAuthorization:

    @pytest.mark.parametrize("role,page,allowed", [
        ("admin", MENU_SETTINGS, True),
        ("admin", MENU_USER_MANAGEMENT, True),
        ("pharmacist", MENU_INVENTORY, True),
        ("pharmacist", MENU_REPORTS, True),
        ("pharmacist", MENU_EXPENSES, False),
        ("pharmacist", MENU_SETTINGS, False),
        ("cashier", MENU_SALES, True),
        ("cashier", MENU_CUSTOMERS, True),
        ("cashier", MENU_INVENTORY, False),
        ("supplier", MENU_DASHBOARD, True),
        ("supplier", MENU_SALES, False),
    ])
    def test_page_roles(self, role, page, allowed):
        user = {"id": 1, "email": "x@y.com", "full_name": "X", "role": role}
        assert is_authorized(user, page) is allowed

    def test_anonymous_user_sees_nothing(self):
        assert not any(is_authorized(None, page) for page in PAGE_ROLES)

    def test_unknown_page(self):
        assert not is_authorized({"role": "admin"}, "Nowhere")

    def test_admin_sees_every_page_in_menu_order(self):
        assert allowed_pages("admin") == list(PAGE_ROLES)

    def test_cashier_menu(self):
        assert allowed_pages("cashier") == [MENU_DASHBOARD, MENU_SALES, MENU_CUSTOMERS]

    def test_unknown_role_menu(self):
        assert allowed_pages(None) == []
