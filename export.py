from __future__ import annotations

from io import BytesIO

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from assignment_models import OverlapResult

OUTPUT_COLUMNS = ["id", "emp1", "emp2", "project_id", "days_worked"]

# Human-facing headers for tables and exported files.
COLUMN_LABELS = {
    "id": "#",
    "emp1": "Employee ID #1",
    "emp2": "Employee ID #2",
    "project_id": "Project ID",
    "days_worked": "Days worked",
}


def overlaps_to_frame(result: OverlapResult, *, maximal_only: bool = False) -> pd.DataFrame:
    """
    One row per overlapping pair, ids numbered from 1 over ``result.all_pairs``.

    With ``maximal_only`` the rows are filtered down to the winning pair of
    employees; the ids stay the ones from the full list.
    """
    rows = []
    for row_id, p in enumerate(result.all_pairs, start=1):
        if maximal_only and (result.best is None or not result.best.matches(p)):
            continue
        rows.append(
            {
                "id": row_id,
                "emp1": p.employee_a,
                "emp2": p.employee_b,
                "project_id": p.project_id,
                "days_worked": p.overlap_days,
            }
        )
    return pd.DataFrame(rows, columns=OUTPUT_COLUMNS)


def export_csv_bytes(frame: pd.DataFrame) -> bytes:
    """Write the pairs table as UTF-8 CSV."""
    return frame.to_csv(index=False).encode("utf-8")


def export_xlsx_bytes(frame: pd.DataFrame, *, sheet_name: str = "Pairs") -> bytes:
    """Write the pairs table as an .xlsx workbook with a styled header row."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    ws.append([COLUMN_LABELS.get(c, c) for c in frame.columns])
    header_fill = PatternFill(start_color="F0F0F0", end_color="F0F0F0", fill_type="solid")
    for c in ws[1]:
        c.font = Font(bold=True)
        c.fill = header_fill
        c.alignment = Alignment(horizontal="left")
    ws.freeze_panes = "A2"

    for row in frame.itertuples(index=False):
        ws.append([int(v) for v in row])

    for col, w in {"A": 8, "B": 18, "C": 18, "D": 14, "E": 14}.items():
        ws.column_dimensions[col].width = w

    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()
