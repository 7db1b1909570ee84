"""Aggregates for the dashboard and reports pages."""
from datetime import date
from typing import Optional

import pandas as pd

from core.config import local_today
from core.constants import EXPIRY_EXPIRED, EXPIRY_SOON, STOCK_LOW
from core.services import (
    DBConnection,
    get_customers,
    get_medicines,
    get_prescriptions,
    get_sale_items,
    get_sales,
)


def _completed(sales: pd.DataFrame) -> pd.DataFrame:
    if sales.empty:
        return sales
    return sales[sales["status"] == "Completed"]


def dashboard_stats(conn: DBConnection, today: Optional[date] = None) -> dict:
    today = today or local_today()
    medicines = get_medicines(conn, today=today)
    customers = get_customers(conn)
    prescriptions = get_prescriptions(conn)
    sales = _completed(get_sales(conn))

    today_iso = today.isoformat()
    return {
        "total_medicines": len(medicines),
        "active_customers": int((customers["status"] == "Active").sum()) if not customers.empty else 0,
        "prescriptions_today": int((prescriptions["date_issued"] == today_iso).sum()) if not prescriptions.empty else 0,
        "daily_revenue": float(sales.loc[sales["sale_date"] == today_iso, "total"].sum()) if not sales.empty else 0.0,
        "low_stock": int((medicines["stock_status"] == STOCK_LOW).sum()) if not medicines.empty else 0,
    }


def low_stock_items(conn: DBConnection) -> pd.DataFrame:
    """Medicines at or below their minimum stock, lowest first."""
    medicines = get_medicines(conn)
    if medicines.empty:
        return medicines
    low = medicines[medicines["stock_status"] == STOCK_LOW]
    return low.sort_values("quantity")[["id", "name", "quantity", "minimum_stock"]]


def expiring_items(conn: DBConnection, today: Optional[date] = None, alert_days: int = 30) -> pd.DataFrame:
    """Medicines already expired or expiring within ``alert_days``, soonest first."""
    medicines = get_medicines(conn, today=today, alert_days=alert_days)
    if medicines.empty:
        return medicines
    expiring = medicines[medicines["expiry_status"].isin([EXPIRY_EXPIRED, EXPIRY_SOON])]
    return expiring.sort_values("expiry_date")[["id", "name", "batch_number", "expiry_date", "expiry_status"]]


def recent_activity(conn: DBConnection, limit: int = 5) -> pd.DataFrame:
    """Latest sales and prescriptions merged into one feed."""
    sales = get_sales(conn)
    prescriptions = get_prescriptions(conn)
    frames = []
    if not sales.empty:
        frames.append(pd.DataFrame({
            "date": sales["sale_date"],
            "action": "Sale " + sales["sale_number"] + " (" + sales["status"] + ")",
            "who": sales["customer_name"],
        }))
    if not prescriptions.empty:
        frames.append(pd.DataFrame({
            "date": prescriptions["date_issued"],
            "action": "Prescription " + prescriptions["prescription_number"] + " (" + prescriptions["status"] + ")",
            "who": prescriptions["patient_name"],
        }))
    if not frames:
        return pd.DataFrame(columns=["date", "action", "who"])
    feed = pd.concat(frames, ignore_index=True)
    return feed.sort_values("date", ascending=False, kind="stable").head(limit).reset_index(drop=True)


def sales_by_month(conn: DBConnection) -> pd.DataFrame:
    """Revenue and number of completed sales per month (YYYY-MM)."""
    sales = _completed(get_sales(conn))
    if sales.empty:
        return pd.DataFrame(columns=["month", "revenue", "sales"])
    sales = sales.assign(month=sales["sale_date"].str[:7])
    grouped = sales.groupby("month").agg(revenue=("total", "sum"), sales=("id", "count"))
    return grouped.reset_index().sort_values("month").reset_index(drop=True)


def top_medicines(conn: DBConnection, n: int = 5) -> pd.DataFrame:
    """Best selling medicines by revenue (completed sales only)."""
    items = get_sale_items(conn)
    sales = _completed(get_sales(conn))
    if items.empty or sales.empty:
        return pd.DataFrame(columns=["medicine_name", "units", "revenue"])
    items = items[items["sale_id"].isin(sales["id"])]
    grouped = items.groupby("medicine_name").agg(units=("quantity", "sum"), revenue=("total", "sum"))
    return grouped.sort_values("revenue", ascending=False).head(n).reset_index()


def category_distribution(conn: DBConnection) -> pd.DataFrame:
    """Units in stock per medicine category."""
    medicines = get_medicines(conn)
    if medicines.empty:
        return pd.DataFrame(columns=["category", "quantity"])
    grouped = medicines.groupby("category")["quantity"].sum().reset_index()
    grouped = grouped[grouped["quantity"] > 0]
    return grouped.sort_values("quantity", ascending=False).reset_index(drop=True)
