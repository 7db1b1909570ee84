"""Dashboard figures, report aggregates and file exports on the demo pharmacy."""

from datetime import date
from io import BytesIO

import pandas as pd
import pytest
from openpyxl import load_workbook

from core.exports import to_excel_bytes, to_pdf_bytes
from core.reports import (
    category_distribution,
    dashboard_stats,
    expiring_items,
    low_stock_items,
    recent_activity,
    sales_by_month,
    top_medicines,
)
from core.services import update_sale_status


class TestDashboard:

    def test_stats(self, seeded_conn, today):
        stats = dashboard_stats(seeded_conn, today=today)
        assert stats["total_medicines"] == 6
        assert stats["active_customers"] == 3
        assert stats["prescriptions_today"] == 1
        assert stats["daily_revenue"] == pytest.approx(55.75)
        assert stats["low_stock"] == 2

    def test_refunded_sales_are_not_revenue(self, seeded_conn, today):
        sale_id = 2  # SAL002, the sale on the fixed day
        update_sale_status(seeded_conn, sale_id, "Refunded")
        assert dashboard_stats(seeded_conn, today=today)["daily_revenue"] == 0

    def test_low_stock_lowest_first(self, seeded_conn):
        assert low_stock_items(seeded_conn)["name"].tolist() == ["Insulin Glargine", "Amoxicillin 250mg"]

    def test_recent_activity(self, seeded_conn):
        feed = recent_activity(seeded_conn, limit=3)
        assert len(feed) == 3
        assert feed.iloc[0]["date"] == "2024-01-17"
        assert feed.iloc[0]["action"] == "Prescription RX001236 (Partially Filled)"

    def test_expiring_items(self, seeded_conn):
        expiring = expiring_items(seeded_conn, today=date(2025, 9, 1), alert_days=30)
        assert expiring["name"].tolist() == ["Amoxicillin 250mg", "Insulin Glargine"]
        assert set(expiring["expiry_status"]) == {"Expired"}
        assert expiring_items(seeded_conn, today=date(2024, 1, 16)).empty

    def test_empty_database(self, conn, today):
        assert dashboard_stats(conn, today=today) == {
            "total_medicines": 0,
            "active_customers": 0,
            "prescriptions_today": 0,
            "daily_revenue": 0.0,
            "low_stock": 0,
        }
        assert recent_activity(conn).empty
        assert sales_by_month(conn).empty
        assert top_medicines(conn).empty
        assert category_distribution(conn).empty


class TestReports:

    def test_sales_by_month(self, seeded_conn):
        monthly = sales_by_month(seeded_conn)
        assert monthly["month"].tolist() == ["2024-01"]
        assert monthly["revenue"].tolist() == [pytest.approx(109.75)]
        assert monthly["sales"].tolist() == [2]

    def test_top_medicines(self, seeded_conn):
        top = top_medicines(seeded_conn, n=1)
        assert top["medicine_name"].tolist() == ["Lisinopril 10mg"]
        assert top["units"].tolist() == [3]
        assert top["revenue"].tolist() == [pytest.approx(56.25)]

    def test_category_distribution(self, seeded_conn):
        dist = category_distribution(seeded_conn).set_index("category")["quantity"]
        assert dist.index[0] == "Cardiovascular"
        assert dist["Cardiovascular"] == 170
        assert dist["Diabetes"] == 123


class TestExports:

    def test_excel_has_one_sheet_per_table(self, seeded_conn):
        data = to_excel_bytes({
            "Sales by Month": sales_by_month(seeded_conn),
            "Low Stock": low_stock_items(seeded_conn),
            "Empty": pd.DataFrame(columns=["a", "b"]),
        })
        assert data[:2] == b"PK"
        sheets = pd.read_excel(BytesIO(data), sheet_name=None)
        assert list(sheets) == ["Sales by Month", "Low Stock", "Empty"]
        assert sheets["Low Stock"]["name"].tolist() == ["Insulin Glargine", "Amoxicillin 250mg"]

    def test_pdf(self, seeded_conn):
        data = to_pdf_bytes(top_medicines(seeded_conn), "Top Medicines")
        assert data.startswith(b"%PDF")

    def test_excel_table_names_start_with_a_letter(self, seeded_conn):
        monthly = sales_by_month(seeded_conn)
        data = to_excel_bytes({"2024 Sales": monthly, "Q1": monthly, "2024-Sales": monthly})
        workbook = load_workbook(BytesIO(data))
        names = [name for ws in workbook.worksheets for name in ws.tables]
        assert len(names) == len({name.lower() for name in names}) == 3
        assert all(name[0].isalpha() for name in names)
        assert "Q1" not in names
