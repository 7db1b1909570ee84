# ---------- services.py ----------
"""Database access and record operations used by the Streamlit pages."""
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date, datetime
from typing import Iterable, List, Optional, Union

import pandas as pd

from core import workflow
from core.config import local_now, local_today
from core.constants import DEFAULT_SETTINGS, DEFAULT_TAX_RATE, ROLES
from core.stock import classify, expiry_status
from core.totals import check_discount, line_total, recompute, validate_line_item

try:
    import psycopg2
    import psycopg2.extensions
except ImportError:
    psycopg2 = None

logger = logging.getLogger(__name__)

# Type alias for database connections
DBConnection = Union[sqlite3.Connection, "psycopg2.extensions.connection"]

MEDICINE_FIELDS = (
    "name",
    "generic_name",
    "category",
    "manufacturer",
    "batch_number",
    "unit_price",
    "selling_price",
    "quantity",
    "minimum_stock",
    "expiry_date",
    "description",
)
CUSTOMER_FIELDS = (
    "name",
    "email",
    "phone",
    "address",
    "date_of_birth",
    "gender",
    "emergency_contact",
    "allergies",
    "status",
)
SUPPLIER_FIELDS = (
    "name",
    "contact_person",
    "email",
    "phone",
    "address",
    "payment_terms",
    "status",
)


def is_postgres(conn: DBConnection) -> bool:
    """Check if connection is PostgreSQL."""
    return psycopg2 is not None and isinstance(conn, psycopg2.extensions.connection)


def _ph(conn: DBConnection) -> str:
    return "%s" if is_postgres(conn) else "?"


def _iso(value):
    """Store dates as ISO strings so SQL comparisons work on both engines."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _pick(data: dict, fields: Iterable[str]) -> dict:
    return {f: _iso(data[f]) for f in fields if f in data}


def _int(value) -> int:
    """int() that treats None/NaN as zero."""
    if value is None or pd.isna(value):
        return 0
    return int(value)


def _require(data: dict, fields: Iterable[str]) -> None:
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Please fill in all required fields")


def _insert(conn: DBConnection, cur, table: str, row: dict) -> int:
    """Insert ``row`` into ``table`` and return the new id."""
    placeholder = _ph(conn)
    cols = ", ".join(row)
    values = ", ".join([placeholder] * len(row))
    query = f"INSERT INTO {table} ({cols}) VALUES ({values})"
    if is_postgres(conn):
        cur.execute(query + " RETURNING id", tuple(row.values()))
        return int(cur.fetchone()[0])
    cur.execute(query, tuple(row.values()))
    return int(cur.lastrowid)


def _read(conn: DBConnection, query: str, params: Optional[list] = None) -> pd.DataFrame:
    return pd.read_sql(query, conn, params=params or None)


def _fetch_one(conn: DBConnection, query: str, params: tuple) -> Optional[dict]:
    cur = conn.cursor()
    cur.execute(query, params)
    row = cur.fetchone()
    if row is None:
        return None
    cols = [d[0] for d in cur.description]
    return dict(zip(cols, row))


def init_db(conn: DBConnection) -> None:
    """Create tables for a new database (safe to run on existing DB)."""
    is_pg = is_postgres(conn)

    # Use SERIAL for PostgreSQL, INTEGER PRIMARY KEY AUTOINCREMENT for SQLite
    id_type = "SERIAL PRIMARY KEY" if is_pg else "INTEGER PRIMARY KEY AUTOINCREMENT"
    real_type = "DOUBLE PRECISION" if is_pg else "REAL"

    cur = conn.cursor()
    tables = [
        f"""
        CREATE TABLE IF NOT EXISTS medicines (
            id {id_type},
            name TEXT UNIQUE NOT NULL,
            generic_name TEXT,
            category TEXT NOT NULL,
            manufacturer TEXT,
            batch_number TEXT,
            unit_price {real_type} DEFAULT 0,
            selling_price {real_type} DEFAULT 0,
            quantity INTEGER DEFAULT 0,
            minimum_stock INTEGER DEFAULT 0,
            expiry_date TEXT,
            description TEXT,
            isactive INTEGER DEFAULT 1,
            created_at TEXT
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS customers (
            id {id_type},
            name TEXT NOT NULL,
            email TEXT,
            phone TEXT,
            address TEXT,
            date_of_birth TEXT,
            gender TEXT,
            emergency_contact TEXT,
            allergies TEXT,
            registration_date TEXT,
            total_purchases {real_type} DEFAULT 0,
            status TEXT DEFAULT 'Active'
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS suppliers (
            id {id_type},
            name TEXT UNIQUE NOT NULL,
            contact_person TEXT,
            email TEXT,
            phone TEXT,
            address TEXT,
            payment_terms TEXT,
            status TEXT DEFAULT 'Active',
            total_orders INTEGER DEFAULT 0,
            last_order TEXT
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS prescriptions (
            id {id_type},
            prescription_number TEXT UNIQUE NOT NULL,
            patient_name TEXT NOT NULL,
            doctor_name TEXT NOT NULL,
            date_issued TEXT,
            instructions TEXT,
            status TEXT DEFAULT 'Pending',
            total_amount {real_type} DEFAULT 0,
            insurance TEXT
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS prescription_items (
            id {id_type},
            prescription_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            dosage TEXT,
            frequency TEXT,
            duration TEXT,
            quantity INTEGER DEFAULT 0
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS sales (
            id {id_type},
            sale_number TEXT UNIQUE NOT NULL,
            customer_name TEXT NOT NULL,
            customer_phone TEXT,
            subtotal {real_type} DEFAULT 0,
            tax {real_type} DEFAULT 0,
            discount {real_type} DEFAULT 0,
            total {real_type} DEFAULT 0,
            payment_method TEXT,
            sale_date TEXT,
            sale_time TEXT,
            prescription_number TEXT,
            status TEXT DEFAULT 'Completed',
            cashier TEXT
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS sale_items (
            id {id_type},
            sale_id INTEGER NOT NULL,
            medicine_id INTEGER,
            medicine_name TEXT NOT NULL,
            quantity INTEGER DEFAULT 0,
            unit_price {real_type} DEFAULT 0,
            total {real_type} DEFAULT 0
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS purchases (
            id {id_type},
            purchase_order_id TEXT UNIQUE NOT NULL,
            supplier_name TEXT NOT NULL,
            order_date TEXT,
            expected_delivery TEXT,
            status TEXT DEFAULT 'Pending',
            total_amount {real_type} DEFAULT 0,
            grn_number TEXT
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS purchase_items (
            id {id_type},
            purchase_id INTEGER NOT NULL,
            medicine_name TEXT NOT NULL,
            quantity INTEGER DEFAULT 0,
            unit_price {real_type} DEFAULT 0,
            batch_number TEXT,
            expiry_date TEXT
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS expenses (
            id {id_type},
            category TEXT NOT NULL,
            description TEXT NOT NULL,
            amount {real_type} NOT NULL,
            expense_date TEXT,
            payment_method TEXT,
            receipt TEXT,
            created_by TEXT
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS cash_flows (
            id {id_type},
            flow_type TEXT NOT NULL,
            amount {real_type} NOT NULL,
            description TEXT NOT NULL,
            flow_date TEXT,
            reference TEXT
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS settings (
            setting_key TEXT PRIMARY KEY,
            setting_value TEXT
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS users (
            id {id_type},
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            full_name TEXT NOT NULL,
            role TEXT NOT NULL,
            status TEXT DEFAULT 'pending',
            created_at TEXT,
            approved_by TEXT
        )
        """,
    ]
    for ddl in tables:
        cur.execute(ddl)
    conn.commit()


# ============================================================================
# Medicines
# ============================================================================

def find_medicine_by_name(conn: DBConnection, name: str) -> Optional[dict]:
    """Find a medicine by name (case-insensitive), active or not."""
    return _fetch_one(
        conn,
        f"SELECT * FROM medicines WHERE LOWER(name) = {_ph(conn)}",
        ((name or "").strip().lower(),),
    )


def get_medicine(conn: DBConnection, medicine_id: int) -> Optional[dict]:
    return _fetch_one(
        conn, f"SELECT * FROM medicines WHERE id = {_ph(conn)}", (int(medicine_id),)
    )


def add_medicine(conn: DBConnection, data: dict) -> int:
    """Insert a new medicine. Name and category are required."""
    _require(data, ("name", "category"))
    row = _pick(data, MEDICINE_FIELDS)
    row["name"] = row["name"].strip()
    if find_medicine_by_name(conn, row["name"]):
        raise ValueError(f"A medicine named '{row['name']}' already exists")
    row["created_at"] = local_now().isoformat()
    cur = conn.cursor()
    try:
        new_id = _insert(conn, cur, "medicines", row)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    logger.info("Added medicine %s (id=%s)", row["name"], new_id)
    return new_id


def update_medicine(conn: DBConnection, medicine_id: int, data: dict) -> None:
    """Update medicine fields (allows renaming)."""
    row = _pick(data, MEDICINE_FIELDS)
    if not row:
        return
    if "name" in row:
        _require(row, ("name",))
        row["name"] = row["name"].strip()
        existing = find_medicine_by_name(conn, row["name"])
        if existing and int(existing["id"]) != int(medicine_id):
            raise ValueError(f"A medicine named '{row['name']}' already exists")
    if "category" in row:
        _require(row, ("category",))
    placeholder = _ph(conn)
    assignments = ", ".join(f"{col}={placeholder}" for col in row)
    cur = conn.cursor()
    try:
        cur.execute(
            f"UPDATE medicines SET {assignments} WHERE id={placeholder}",
            tuple(row.values()) + (int(medicine_id),),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def delete_medicine(conn: DBConnection, medicine_id: int) -> None:
    """Soft-delete a medicine by marking it inactive (isactive=0)."""
    placeholder = _ph(conn)
    cur = conn.cursor()
    cur.execute(f"UPDATE medicines SET isactive=0 WHERE id={placeholder}", (int(medicine_id),))
    conn.commit()


def restore_medicine(conn: DBConnection, medicine_id: int) -> None:
    """Restore a previously soft-deleted medicine (isactive=1)."""
    placeholder = _ph(conn)
    cur = conn.cursor()
    cur.execute(f"UPDATE medicines SET isactive=1 WHERE id={placeholder}", (int(medicine_id),))
    conn.commit()


def adjust_stock(conn: DBConnection, medicine_id: int, delta: int) -> int:
    """Add ``delta`` units to a medicine's stock and return the new level.

    Stock never goes below zero; a decrement larger than the current stock
    raises ValueError.
    """
    medicine = get_medicine(conn, medicine_id)
    if medicine is None:
        raise ValueError(f"Medicine not found: {medicine_id}")
    current = int(medicine["quantity"] or 0)
    new_stock = current + int(delta)
    if new_stock < 0:
        raise ValueError(
            f"Insufficient stock for {medicine['name']}: requested {-int(delta)}, available {current}"
        )
    placeholder = _ph(conn)
    cur = conn.cursor()
    try:
        cur.execute(
            f"UPDATE medicines SET quantity={placeholder} WHERE id={placeholder}",
            (new_stock, int(medicine_id)),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return new_stock


def get_medicines(
    conn: DBConnection,
    include_inactive: bool = False,
    today: Optional[date] = None,
    alert_days: int = DEFAULT_SETTINGS["expiry_alert_days"],
) -> pd.DataFrame:
    """Return medicines with their stock and expiry status columns."""
    query = "SELECT * FROM medicines"
    if not include_inactive:
        query += " WHERE isactive=1"
    query += " ORDER BY name"
    df = _read(conn, query)
    if df.empty:
        df["stock_status"] = pd.Series(dtype=str)
        df["expiry_status"] = pd.Series(dtype=str)
        return df
    today = today or local_today()
    df["stock_status"] = [
        classify(_int(q), _int(m))
        for q, m in zip(df["quantity"], df["minimum_stock"])
    ]
    df["expiry_status"] = [
        expiry_status(d, today, alert_days) for d in df["expiry_date"]
    ]
    return df


# ============================================================================
# Customers & Suppliers
# ============================================================================

def _set_status(conn: DBConnection, table: str, kind: str, record_id: int, new_status: str) -> None:
    placeholder = _ph(conn)
    row = _fetch_one(conn, f"SELECT status FROM {table} WHERE id={placeholder}", (int(record_id),))
    if row is None:
        raise ValueError(f"No {kind} with id {record_id}")
    workflow.transition(kind, row["status"], new_status)
    cur = conn.cursor()
    try:
        cur.execute(
            f"UPDATE {table} SET status={placeholder} WHERE id={placeholder}",
            (new_status, int(record_id)),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    logger.info("%s %s status %s -> %s", kind, record_id, row["status"], new_status)


def add_customer(conn: DBConnection, data: dict) -> int:
    """Register a customer. Name, email and phone are required."""
    _require(data, ("name", "email", "phone"))
    row = _pick(data, CUSTOMER_FIELDS)
    row.setdefault("status", "Active")
    row["registration_date"] = _iso(data.get("registration_date") or local_today())
    row["total_purchases"] = 0
    cur = conn.cursor()
    try:
        new_id = _insert(conn, cur, "customers", row)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return new_id


def get_customers(conn: DBConnection) -> pd.DataFrame:
    return _read(conn, "SELECT * FROM customers ORDER BY name")


def set_customer_status(conn: DBConnection, customer_id: int, new_status: str) -> None:
    _set_status(conn, "customers", workflow.CUSTOMER, customer_id, new_status)


def calculate_age(date_of_birth, today: Optional[date] = None) -> Optional[int]:
    """Age in whole years, or None when the birth date is missing/invalid."""
    if not date_of_birth:
        return None
    if isinstance(date_of_birth, datetime):
        born = date_of_birth.date()
    elif isinstance(date_of_birth, date):
        born = date_of_birth
    else:
        try:
            born = date.fromisoformat(str(date_of_birth)[:10])
        except ValueError:
            return None
    today = today or local_today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def add_supplier(conn: DBConnection, data: dict) -> int:
    """Add a supplier. Name, email and phone are required."""
    _require(data, ("name", "email", "phone"))
    row = _pick(data, SUPPLIER_FIELDS)
    row["name"] = row["name"].strip()
    row.setdefault("status", "Active")
    row["total_orders"] = 0
    row["last_order"] = "Never"
    existing = _fetch_one(
        conn,
        f"SELECT id FROM suppliers WHERE LOWER(name) = {_ph(conn)}",
        (row["name"].lower(),),
    )
    if existing:
        raise ValueError(f"A supplier named '{row['name']}' already exists")
    cur = conn.cursor()
    try:
        new_id = _insert(conn, cur, "suppliers", row)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return new_id


def get_suppliers(conn: DBConnection) -> pd.DataFrame:
    return _read(conn, "SELECT * FROM suppliers ORDER BY name")


def set_supplier_status(conn: DBConnection, supplier_id: int, new_status: str) -> None:
    _set_status(conn, "suppliers", workflow.SUPPLIER, supplier_id, new_status)


# ============================================================================
# Prescriptions
# ============================================================================

def add_prescription(conn: DBConnection, data: dict, medications: Iterable[dict] = ()) -> int:
    """Create a prescription with its medication lines.

    Prescription number, patient and doctor are required. Lines without a
    medication name are dropped.
    """
    _require(data, ("prescription_number", "patient_name", "doctor_name"))
    number = data["prescription_number"].strip()
    placeholder = _ph(conn)
    if _fetch_one(
        conn,
        f"SELECT id FROM prescriptions WHERE prescription_number={placeholder}",
        (number,),
    ):
        raise ValueError(f"Prescription {number} already exists")
    status = data.get("status") or "Pending"
    workflow.allowed_transitions(workflow.PRESCRIPTION, status)
    row = {
        "prescription_number": number,
        "patient_name": data["patient_name"].strip(),
        "doctor_name": data["doctor_name"].strip(),
        "date_issued": _iso(data.get("date_issued") or local_today()),
        "instructions": data.get("instructions", ""),
        "status": status,
        "total_amount": float(data.get("total_amount") or 0),
        "insurance": data.get("insurance", ""),
    }
    cur = conn.cursor()
    try:
        new_id = _insert(conn, cur, "prescriptions", row)
        for med in medications:
            name = str(med.get("name") or "").strip()
            if not name:
                continue
            _insert(
                conn,
                cur,
                "prescription_items",
                {
                    "prescription_id": new_id,
                    "name": name,
                    "dosage": med.get("dosage", ""),
                    "frequency": med.get("frequency", ""),
                    "duration": med.get("duration", ""),
                    "quantity": int(med.get("quantity") or 0),
                },
            )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return new_id


def get_prescriptions(conn: DBConnection) -> pd.DataFrame:
    return _read(conn, "SELECT * FROM prescriptions ORDER BY date_issued DESC, id DESC")


def get_prescription_items(conn: DBConnection, prescription_id: int) -> pd.DataFrame:
    return _read(
        conn,
        f"SELECT * FROM prescription_items WHERE prescription_id={_ph(conn)} ORDER BY id",
        [int(prescription_id)],
    )


def update_prescription_status(conn: DBConnection, prescription_id: int, new_status: str) -> None:
    _set_status(conn, "prescriptions", workflow.PRESCRIPTION, prescription_id, new_status)


# ============================================================================
# Sales
# ============================================================================

def next_sale_number(conn: DBConnection, prefix: str = "SAL") -> str:
    """Next free sale number, e.g. SAL003."""
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) FROM sales")
    n = int(cur.fetchone()[0]) + 1
    placeholder = _ph(conn)
    while True:
        candidate = f"{prefix}{n:03d}"
        cur.execute(f"SELECT 1 FROM sales WHERE sale_number={placeholder}", (candidate,))
        if cur.fetchone() is None:
            return candidate
        n += 1


def create_sale(
    conn: DBConnection,
    sale: dict,
    items: List[dict],
    tax_rate: float = DEFAULT_TAX_RATE,
    discount_limit: Optional[float] = None,
    sale_prefix: str = "SAL",
) -> int:
    """Record a sale with its line items and take the sold units out of stock.

    Items linked to a medicine (``medicine_id``) are checked against and
    deducted from stock; free-text items are recorded as-is.
    """
    if not str(sale.get("customer_name") or "").strip() or not items:
        raise ValueError("Please add customer details and at least one item")
    for item in items:
        validate_line_item(item)
    discount = float(sale.get("discount") or 0)
    totals = recompute(items, discount, tax_rate)
    check_discount(totals, discount, discount_limit)
    status = sale.get("status") or "Completed"
    workflow.allowed_transitions(workflow.SALE, status)

    # Check stock for all linked items before writing anything
    requested = {}
    for item in items:
        if item.get("medicine_id") is not None:
            mid = int(item["medicine_id"])
            requested[mid] = requested.get(mid, 0) + int(item.get("quantity") or 0)
    for mid, qty in requested.items():
        medicine = get_medicine(conn, mid)
        if medicine is None or not int(medicine.get("isactive", 1) or 0):
            raise ValueError(f"Medicine not available: {mid}")
        available = int(medicine["quantity"] or 0)
        if qty > available:
            raise ValueError(
                f"Insufficient stock for {medicine['name']}: requested {qty}, available {available}"
            )

    now = local_now()
    placeholder = _ph(conn)
    cur = conn.cursor()
    try:
        row = {
            "sale_number": sale.get("sale_number") or next_sale_number(conn, sale_prefix),
            "customer_name": sale["customer_name"].strip(),
            "customer_phone": sale.get("customer_phone", ""),
            "subtotal": totals["subtotal"],
            "tax": totals["tax"],
            "discount": totals["discount"],
            "total": totals["total"],
            "payment_method": sale.get("payment_method") or "Cash",
            "sale_date": _iso(sale.get("sale_date") or now.date()),
            "sale_time": sale.get("sale_time") or now.strftime("%I:%M %p"),
            "prescription_number": sale.get("prescription_number", ""),
            "status": status,
            "cashier": sale.get("cashier", ""),
        }
        sale_id = _insert(conn, cur, "sales", row)
        for item in items:
            _insert(
                conn,
                cur,
                "sale_items",
                {
                    "sale_id": sale_id,
                    "medicine_id": item.get("medicine_id"),
                    "medicine_name": item.get("medicine_name") or "",
                    "quantity": int(item.get("quantity") or 0),
                    "unit_price": float(item.get("unit_price") or 0),
                    "total": line_total(item),
                },
            )
        for mid, qty in requested.items():
            cur.execute(
                f"UPDATE medicines SET quantity = quantity - {placeholder} WHERE id = {placeholder}",
                (qty, mid),
            )
        cur.execute(
            f"UPDATE customers SET total_purchases = total_purchases + {placeholder} "
            f"WHERE LOWER(name) = {placeholder}",
            (totals["total"], row["customer_name"].lower()),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        logger.exception("Failed to record sale for %s", sale.get("customer_name"))
        raise
    logger.info("Recorded sale %s total=%.2f", row["sale_number"], totals["total"])
    return sale_id


def get_sales(conn: DBConnection) -> pd.DataFrame:
    return _read(conn, "SELECT * FROM sales ORDER BY sale_date DESC, id DESC")


def get_sale_items(conn: DBConnection, sale_id: Optional[int] = None) -> pd.DataFrame:
    if sale_id is None:
        return _read(conn, "SELECT * FROM sale_items ORDER BY sale_id, id")
    return _read(
        conn,
        f"SELECT * FROM sale_items WHERE sale_id={_ph(conn)} ORDER BY id",
        [int(sale_id)],
    )


def update_sale_status(conn: DBConnection, sale_id: int, new_status: str) -> None:
    """Move a sale through its workflow. Refunds put linked items back in stock."""
    placeholder = _ph(conn)
    sale = _fetch_one(conn, f"SELECT * FROM sales WHERE id={placeholder}", (int(sale_id),))
    if sale is None:
        raise ValueError(f"No sale with id {sale_id}")
    workflow.transition(workflow.SALE, sale["status"], new_status)
    cur = conn.cursor()
    try:
        cur.execute(
            f"UPDATE sales SET status={placeholder} WHERE id={placeholder}",
            (new_status, int(sale_id)),
        )
        if new_status == "Refunded":
            cur.execute(
                f"SELECT medicine_id, quantity FROM sale_items "
                f"WHERE sale_id={placeholder} AND medicine_id IS NOT NULL",
                (int(sale_id),),
            )
            for medicine_id, quantity in cur.fetchall():
                cur.execute(
                    f"UPDATE medicines SET quantity = quantity + {placeholder} WHERE id = {placeholder}",
                    (int(quantity), int(medicine_id)),
                )
            cur.execute(
                f"UPDATE customers SET total_purchases = total_purchases - {placeholder} "
                f"WHERE LOWER(name) = {placeholder}",
                (float(sale["total"] or 0), str(sale["customer_name"]).lower()),
            )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    logger.info("Sale %s status %s -> %s", sale["sale_number"], sale["status"], new_status)


# ============================================================================
# Purchases
# ============================================================================

def create_purchase(conn: DBConnection, purchase: dict, items: Optional[List[dict]] = None) -> int:
    """Create a purchase order.

    The order total is the sum of its items when items are given, otherwise
    the entered total. The supplier's order count and last order date are
    updated when the supplier is known.
    """
    _require(purchase, ("purchase_order_id", "supplier_name"))
    po_id = purchase["purchase_order_id"].strip()
    placeholder = _ph(conn)
    if _fetch_one(conn, f"SELECT id FROM purchases WHERE purchase_order_id={placeholder}", (po_id,)):
        raise ValueError(f"Purchase order {po_id} already exists")
    status = purchase.get("status") or "Pending"
    workflow.allowed_transitions(workflow.PURCHASE, status)
    items = [i for i in (items or []) if str(i.get("medicine_name") or "").strip()]
    total = sum(line_total(i) for i in items) if items else float(purchase.get("total_amount") or 0)
    order_date = _iso(purchase.get("order_date") or local_today())
    cur = conn.cursor()
    try:
        new_id = _insert(
            conn,
            cur,
            "purchases",
            {
                "purchase_order_id": po_id,
                "supplier_name": purchase["supplier_name"].strip(),
                "order_date": order_date,
                "expected_delivery": _iso(purchase.get("expected_delivery") or ""),
                "status": status,
                "total_amount": total,
                "grn_number": None,
            },
        )
        for item in items:
            _insert(
                conn,
                cur,
                "purchase_items",
                {
                    "purchase_id": new_id,
                    "medicine_name": item["medicine_name"].strip(),
                    "quantity": int(item.get("quantity") or 0),
                    "unit_price": float(item.get("unit_price") or 0),
                    "batch_number": item.get("batch_number", ""),
                    "expiry_date": _iso(item.get("expiry_date") or ""),
                },
            )
        cur.execute(
            f"UPDATE suppliers SET total_orders = total_orders + 1, last_order = {placeholder} "
            f"WHERE LOWER(name) = {placeholder}",
            (order_date, purchase["supplier_name"].strip().lower()),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return new_id


def get_purchases(conn: DBConnection) -> pd.DataFrame:
    return _read(conn, "SELECT * FROM purchases ORDER BY order_date DESC, id DESC")


def get_purchase_items(conn: DBConnection, purchase_id: int) -> pd.DataFrame:
    return _read(
        conn,
        f"SELECT * FROM purchase_items WHERE purchase_id={_ph(conn)} ORDER BY id",
        [int(purchase_id)],
    )


def generate_grn(conn: DBConnection, purchase_id: int) -> str:
    """Issue (or return the existing) goods received note number."""
    placeholder = _ph(conn)
    purchase = _fetch_one(
        conn, f"SELECT purchase_order_id, grn_number FROM purchases WHERE id={placeholder}", (int(purchase_id),)
    )
    if purchase is None:
        raise ValueError(f"No purchase with id {purchase_id}")
    if purchase["grn_number"]:
        return purchase["grn_number"]
    grn = f"GRN-{purchase['purchase_order_id']}"
    cur = conn.cursor()
    cur.execute(f"UPDATE purchases SET grn_number={placeholder} WHERE id={placeholder}", (grn, int(purchase_id)))
    conn.commit()
    return grn


def update_purchase_status(conn: DBConnection, purchase_id: int, new_status: str) -> None:
    """Move a purchase through its workflow.

    On delivery the ordered items are received into stock, matched to
    medicines by name, and a GRN number is issued.
    """
    placeholder = _ph(conn)
    purchase = _fetch_one(conn, f"SELECT * FROM purchases WHERE id={placeholder}", (int(purchase_id),))
    if purchase is None:
        raise ValueError(f"No purchase with id {purchase_id}")
    workflow.transition(workflow.PURCHASE, purchase["status"], new_status)
    cur = conn.cursor()
    try:
        cur.execute(
            f"UPDATE purchases SET status={placeholder} WHERE id={placeholder}",
            (new_status, int(purchase_id)),
        )
        if new_status == "Delivered":
            cur.execute(
                f"SELECT medicine_name, quantity, batch_number, expiry_date FROM purchase_items "
                f"WHERE purchase_id={placeholder}",
                (int(purchase_id),),
            )
            for name, quantity, batch, expiry in cur.fetchall():
                medicine = find_medicine_by_name(conn, name)
                if medicine is None:
                    logger.warning("Received %s x %s but no such medicine in inventory", quantity, name)
                    continue
                cur.execute(
                    f"UPDATE medicines SET quantity = quantity + {placeholder}, "
                    f"batch_number = COALESCE(NULLIF({placeholder}, ''), batch_number), "
                    f"expiry_date = COALESCE(NULLIF({placeholder}, ''), expiry_date) "
                    f"WHERE id = {placeholder}",
                    (int(quantity or 0), batch or "", expiry or "", int(medicine["id"])),
                )
            if not purchase["grn_number"]:
                cur.execute(
                    f"UPDATE purchases SET grn_number={placeholder} WHERE id={placeholder}",
                    (f"GRN-{purchase['purchase_order_id']}", int(purchase_id)),
                )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    logger.info(
        "Purchase %s status %s -> %s", purchase["purchase_order_id"], purchase["status"], new_status
    )


# ============================================================================
# Expenses & Cash Flow
# ============================================================================

def _positive_amount(value) -> float:
    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        raise ValueError("Please fill in all required fields") from None
    if amount <= 0:
        raise ValueError("Please fill in all required fields")
    return amount


def add_expense(conn: DBConnection, data: dict) -> int:
    """Record an expense. Category, description and a positive amount are required."""
    _require(data, ("category", "description"))
    amount = _positive_amount(data.get("amount"))
    cur = conn.cursor()
    try:
        new_id = _insert(
            conn,
            cur,
            "expenses",
            {
                "category": data["category"].strip(),
                "description": data["description"].strip(),
                "amount": amount,
                "expense_date": _iso(data.get("expense_date") or local_today()),
                "payment_method": data.get("payment_method") or "Cash",
                "receipt": data.get("receipt", ""),
                "created_by": data.get("created_by", ""),
            },
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return new_id


def get_expenses(conn: DBConnection) -> pd.DataFrame:
    return _read(conn, "SELECT * FROM expenses ORDER BY expense_date DESC, id DESC")


def add_cash_flow(conn: DBConnection, data: dict) -> int:
    """Record a cash in/out entry."""
    _require(data, ("flow_type", "description"))
    if data["flow_type"] not in ("Cash In", "Cash Out"):
        raise ValueError(f"Unknown cash flow type: {data['flow_type']}")
    amount = _positive_amount(data.get("amount"))
    cur = conn.cursor()
    try:
        new_id = _insert(
            conn,
            cur,
            "cash_flows",
            {
                "flow_type": data["flow_type"],
                "amount": amount,
                "description": data["description"].strip(),
                "flow_date": _iso(data.get("flow_date") or local_today()),
                "reference": data.get("reference", ""),
            },
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return new_id


def get_cash_flows(conn: DBConnection) -> pd.DataFrame:
    return _read(conn, "SELECT * FROM cash_flows ORDER BY flow_date DESC, id DESC")


def cash_flow_summary(conn: DBConnection) -> dict:
    expenses = get_expenses(conn)
    flows = get_cash_flows(conn)
    total_expenses = float(expenses["amount"].sum()) if not expenses.empty else 0.0
    if flows.empty:
        cash_in = cash_out = 0.0
    else:
        cash_in = float(flows.loc[flows["flow_type"] == "Cash In", "amount"].sum())
        cash_out = float(flows.loc[flows["flow_type"] == "Cash Out", "amount"].sum())
    return {
        "total_expenses": total_expenses,
        "cash_in": cash_in,
        "cash_out": cash_out,
        "net_cash_flow": cash_in - cash_out,
    }


# ============================================================================
# Settings
# ============================================================================

def _coerce_setting(key: str, value):
    default = DEFAULT_SETTINGS.get(key)
    if isinstance(default, bool):
        return bool(value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return value


def get_settings(conn: DBConnection) -> dict:
    """Return all settings, falling back to defaults for unset keys."""
    settings = dict(DEFAULT_SETTINGS)
    cur = conn.cursor()
    cur.execute("SELECT setting_key, setting_value FROM settings")
    for key, raw in cur.fetchall():
        try:
            settings[key] = _coerce_setting(key, json.loads(raw))
        except (TypeError, ValueError):
            logger.warning("Ignoring unreadable setting %s=%r", key, raw)
    return settings


def save_settings(conn: DBConnection, updates: dict) -> None:
    """Persist the given settings. Unknown keys are rejected."""
    unknown = [k for k in updates if k not in DEFAULT_SETTINGS]
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
    if "tax_rate" in updates and not 0 <= float(updates["tax_rate"]) < 1:
        raise ValueError("Tax rate must be between 0 and 1")
    if "discount_limit" in updates and not 0 <= float(updates["discount_limit"]) <= 100:
        raise ValueError("Discount limit must be between 0 and 100 percent")
    placeholder = _ph(conn)
    cur = conn.cursor()
    try:
        for key, value in updates.items():
            cur.execute(
                f"INSERT INTO settings (setting_key, setting_value) VALUES ({placeholder}, {placeholder}) "
                "ON CONFLICT (setting_key) DO UPDATE SET setting_value = excluded.setting_value",
                (key, json.dumps(_coerce_setting(key, value))),
            )
        conn.commit()
    except Exception:
        conn.rollback()
        raise


# ============================================================================
# User Management Functions
# ============================================================================

def insert_user(
    conn: DBConnection,
    email: str,
    password_hash: str,
    full_name: str,
    role: str,
    status: str = "pending",
    approved_by: Optional[str] = None,
) -> int:
    cur = conn.cursor()
    try:
        new_id = _insert(
            conn,
            cur,
            "users",
            {
                "email": email.strip().lower(),
                "password_hash": password_hash,
                "full_name": full_name.strip(),
                "role": role,
                "status": status,
                "created_at": local_now().isoformat(),
                "approved_by": approved_by,
            },
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return new_id


def get_all_users(conn: DBConnection) -> pd.DataFrame:
    """Get all users from database."""
    try:
        query = "SELECT id, email, full_name, role, status, created_at, approved_by FROM users ORDER BY created_at DESC"
        return pd.read_sql(query, conn)
    except Exception as e:
        logger.exception("Failed to read users: %s", e)
        return pd.DataFrame()


def get_pending_users(conn: DBConnection) -> pd.DataFrame:
    """Get all pending users."""
    try:
        query = "SELECT id, email, full_name, role, created_at FROM users WHERE status = 'pending' ORDER BY created_at ASC"
        return pd.read_sql(query, conn)
    except Exception as e:
        logger.exception("Failed to read pending users: %s", e)
        return pd.DataFrame()


def approve_user(conn: DBConnection, user_id: int, approved_by: str) -> bool:
    """Approve a pending user."""
    placeholder = _ph(conn)
    cur = conn.cursor()
    try:
        cur.execute(
            f"UPDATE users SET status = {placeholder}, approved_by = {placeholder} WHERE id = {placeholder}",
            ("approved", approved_by, int(user_id)),
        )
        conn.commit()
        return True
    except Exception as e:
        conn.rollback()
        logger.exception("Failed to approve user: %s", e)
        return False


def reject_user(conn: DBConnection, user_id: int) -> bool:
    """Reject a pending user (delete them)."""
    placeholder = _ph(conn)
    cur = conn.cursor()
    try:
        cur.execute(
            f"DELETE FROM users WHERE id = {placeholder} AND status = {placeholder}",
            (int(user_id), "pending"),
        )
        conn.commit()
        return True
    except Exception as e:
        conn.rollback()
        logger.exception("Failed to reject user: %s", e)
        return False


def delete_user(conn: DBConnection, user_id: int) -> bool:
    """Delete a user (admin only)."""
    placeholder = _ph(conn)
    cur = conn.cursor()
    try:
        cur.execute(f"DELETE FROM users WHERE id = {placeholder}", (int(user_id),))
        conn.commit()
        return True
    except Exception as e:
        conn.rollback()
        logger.exception("Failed to delete user: %s", e)
        return False


def update_user_role(conn: DBConnection, user_id: int, new_role: str) -> bool:
    """Update user role (admin only)."""
    if new_role not in ROLES:
        logger.warning("Refusing unknown role %s for user %s", new_role, user_id)
        return False
    placeholder = _ph(conn)
    cur = conn.cursor()
    try:
        cur.execute(f"UPDATE users SET role = {placeholder} WHERE id = {placeholder}", (new_role, int(user_id)))
        conn.commit()
        return True
    except Exception as e:
        conn.rollback()
        logger.exception("Failed to update user role: %s", e)
        return False
