"""Excel and PDF exports of report tables."""
from io import BytesIO
from typing import Dict

import pandas as pd
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table as XlTable, TableStyleInfo as XlTableStyleInfo
from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

EXCEL_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _table_name(sheet_name: str, used: set) -> str:
    """Excel table name for a sheet: starts with a letter, never a cell reference, unique."""
    cleaned = "".join(ch for ch in sheet_name.title() if ch.isalnum() or ch == "_")
    base = f"tbl{cleaned or 'Report'}"
    name, n = base, 2
    while name.lower() in used:
        name = f"{base}{n}"
        n += 1
    used.add(name.lower())
    return name


def to_excel_bytes(sheets: Dict[str, pd.DataFrame]) -> bytes:
    """Write each DataFrame to its own sheet, formatted as an Excel table."""
    buf = BytesIO()
    table_names = set()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for sheet_name, df in sheets.items():
            df.to_excel(writer, index=False, sheet_name=sheet_name)
            ws = writer.sheets[sheet_name]
            max_col = len(df.columns)
            max_row = len(df) + 1
            if max_col and len(df):
                last_col = get_column_letter(max_col)
                table = XlTable(
                    displayName=_table_name(sheet_name, table_names),
                    ref=f"A1:{last_col}{max_row}",
                )
                table.tableStyleInfo = XlTableStyleInfo(
                    name="TableStyleMedium9",
                    showFirstColumn=False,
                    showLastColumn=False,
                    showRowStripes=True,
                    showColumnStripes=False,
                )
                ws.add_table(table)
            for idx, col_name in enumerate(df.columns, start=1):
                ws.column_dimensions[get_column_letter(idx)].width = max(12, len(str(col_name)) + 2)
    return buf.getvalue()


def to_pdf_bytes(df: pd.DataFrame, title: str) -> bytes:
    """Render a DataFrame as a single landscape PDF table."""
    buf = BytesIO()
    table_names = set()
    doc = SimpleDocTemplate(buf, pagesize=landscape(letter), title=title)
    styles = getSampleStyleSheet()
    data = [list(map(str, df.columns))] + df.fillna("").astype(str).values.tolist()
    table = Table(data, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    doc.build([Paragraph(title, styles["Title"]), Spacer(1, 12), table])
    return buf.getvalue()
