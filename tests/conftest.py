"""
Pytest fixtures for PharmaCare tests.

Every test gets its own in-memory SQLite database with the schema created;
``seeded_conn`` additionally loads the demo records and users.
"""

import sqlite3
from datetime import date

import pytest

from core.seed import seed_demo_data
from core.services import add_medicine, init_db


@pytest.fixture(scope='function')
def conn():
    """Fresh database with all tables and no rows."""
    connection = sqlite3.connect(":memory:")
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture(scope='function')
def seeded_conn(conn):
    """Database loaded with the demo pharmacy."""
    seed_demo_data(conn)
    return conn


@pytest.fixture
def today():
    """A fixed 'today' so expiry and dashboard figures do not drift."""
    return date(2024, 1, 16)


@pytest.fixture
def medicine(conn):
    """One stocked medicine in an otherwise empty database."""
    medicine_id = add_medicine(conn, {
        "name": "Ibuprofen 200mg",
        "category": "Pain Relief",
        "unit_price": 3.00,
        "selling_price": 10.00,
        "quantity": 10,
        "minimum_stock": 5,
        "expiry_date": "2030-01-01",
    })
    return medicine_id
