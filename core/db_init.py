# ---------- db_init.py ----------
"""Create and return a database connection (PostgreSQL or SQLite).
Schema creation is delegated to `services.init_db(conn)` and demo data to
`seed.seed_demo_data(conn)`.
"""
import logging
import os
import sqlite3

import streamlit as st

from core.config import DB_PATH, SEED_DEMO_DATA
from core.seed import seed_demo_data, seed_users
from core.services import init_db as init_schema

logger = logging.getLogger(__name__)


def _has_postgres_secrets() -> bool:
    try:
        return "postgres" in st.secrets
    except Exception:
        # No secrets.toml at all
        logger.debug("No Streamlit secrets found; using SQLite")
        return False


def init_db():
    """Initialize database connection.
    Uses PostgreSQL when `[postgres]` secrets are configured (e.g. Supabase),
    otherwise SQLite at PHARMACARE_DB_PATH (in-memory by default).
    Connection reuse is handled by caching in app.py.
    """
    if _has_postgres_secrets():
        import psycopg2

        try:
            # Supabase requires SSL
            conn = psycopg2.connect(
                host=st.secrets["postgres"]["host"],
                port=int(st.secrets["postgres"]["port"]),
                database=st.secrets["postgres"]["database"],
                user=st.secrets["postgres"]["user"],
                password=st.secrets["postgres"]["password"],
                sslmode=st.secrets["postgres"].get("sslmode", "require"),
                connect_timeout=10,
                options="-c statement_timeout=30000",
            )
            conn.autocommit = False
        except Exception as e:
            logger.exception("PostgreSQL connection failed")
            st.error(f"⚠️ PostgreSQL connection failed: {str(e)}")
            st.warning("\U0001F4DD Check: 1) Database project is ACTIVE (not paused), 2) Secrets are correct, 3) Database allows connections")
            # Do not fall back to SQLite when PostgreSQL secrets are provided.
            st.stop()
    else:
        conn = connect_sqlite(DB_PATH)

    init_schema(conn)
    if SEED_DEMO_DATA:
        seed_demo_data(conn)
    else:
        # Keep demo logins available even without demo records
        seed_users(conn)
    return conn


def connect_sqlite(path: str = DB_PATH) -> sqlite3.Connection:
    """Create SQLite connection (ensures the data dir exists for file databases)."""
    if path != ":memory:":
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
    logger.info("Using SQLite database at %s", path)
    return sqlite3.connect(path, check_same_thread=False)
