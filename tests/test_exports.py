import io

import pytest
from openpyxl import load_workbook

from workshop_tracker.errors import ValidationError
from workshop_tracker.exports import (
    EXPENSE_COLUMNS,
    INCOME_COLUMNS,
    export_csv,
    export_excel,
    to_frame,
)

INCOMES = [
    {"id": 1, "created_at": "2024-03-05T18:00:00+00:00", "name": "Clay Night", "platform": "In person",
     "guest_count": 8, "payment": 1234, "class_types": {"name": "Pottery"}},
    {"id": 2, "created_at": "2024-03-20T18:00:00+00:00", "name": "Paint & Sip", "platform": None,
     "guest_count": 4, "payment": 50.5},
]


def test_empty_export_is_rejected():
    with pytest.raises(ValidationError, match="No data to export"):
        export_csv([], INCOME_COLUMNS)


def test_frame_uses_labels_and_formats_dates():
    df = to_frame(INCOMES, INCOME_COLUMNS)
    assert list(df.columns) == ["Date", "Workshop", "Platform", "Participants", "Payment"]
    assert df["Date"].tolist() == ["2024-03-05", "2024-03-20"]
    assert df["Platform"].tolist() == ["In person", ""]


def test_csv_export():
    text = export_csv(INCOMES, INCOME_COLUMNS).decode("utf-8")
    lines = text.strip().splitlines()
    assert lines[0] == "Date,Workshop,Platform,Participants,Payment"
    assert lines[1].startswith("2024-03-05,Clay Night,In person,8,1234")
    assert lines[2].startswith("2024-03-20,Paint & Sip,,4,50.5")


def test_excel_export_formats_currency():
    content = export_excel(INCOMES, INCOME_COLUMNS, sheet_name="Incomes")
    wb = load_workbook(io.BytesIO(content))
    ws = wb["Incomes"]
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0] == ("Date", "Workshop", "Platform", "Participants", "Payment")
    assert rows[1][4] == "$1,234.00"
    assert rows[2][4] == "$50.50"


def test_excel_sheet_name_is_truncated():
    expenses = [{"created_at": "2024-03-01", "name": "Clay", "cost": 5}]
    content = export_excel(expenses, EXPENSE_COLUMNS, sheet_name="Expenses for the whole studio in 2024")
    wb = load_workbook(io.BytesIO(content))
    assert wb.sheetnames == ["Expenses for the whole studio i"]
