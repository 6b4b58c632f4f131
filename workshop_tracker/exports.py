from __future__ import annotations

import io
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import pandas as pd

from workshop_tracker.analytics import parse_timestamp
from workshop_tracker.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class Column:
    key: str
    label: str
    type: str = "text"  # text | date | currency | number


INCOME_COLUMNS = [
    Column("created_at", "Date", "date"),
    Column("name", "Workshop"),
    Column("platform", "Platform"),
    Column("guest_count", "Participants", "number"),
    Column("payment", "Payment", "currency"),
]

EXPENSE_COLUMNS = [
    Column("created_at", "Date", "date"),
    Column("name", "Expense"),
    Column("category", "Category"),
    Column("who_paid", "Paid By"),
    Column("month", "Month"),
    Column("cost", "Cost", "currency"),
]

CLIENT_COLUMNS = [
    Column("full_name", "Name"),
    Column("email", "Email"),
    Column("phone", "Phone"),
    Column("company", "Company"),
    Column("total_spent", "Total Spent", "currency"),
    Column("total_sessions", "Sessions", "number"),
]


def _cell(value: Any, column: Column, formatted: bool) -> Any:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if column.type == "date":
        ts = parse_timestamp(value)
        return ts.strftime("%Y-%m-%d") if ts else value
    if formatted and column.type == "currency" and isinstance(value, (int, float)):
        return f"${value:,.2f}"
    return value


def to_frame(rows: Sequence[Dict[str, Any]], columns: List[Column], formatted: bool = False) -> pd.DataFrame:
    if not rows:
        raise ValidationError("No data to export")
    data = [
        {c.label: _cell(row.get(c.key), c, formatted) for c in columns}
        for row in rows
    ]
    return pd.DataFrame(data, columns=[c.label for c in columns])


def export_csv(rows: Sequence[Dict[str, Any]], columns: List[Column]) -> bytes:
    return to_frame(rows, columns).to_csv(index=False).encode("utf-8")


def export_excel(rows: Sequence[Dict[str, Any]], columns: List[Column], sheet_name: str = "Data") -> bytes:
    df = to_frame(rows, columns, formatted=True)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name[:31], index=False)
    buffer.seek(0)
    logger.info("Exported %d rows to sheet %s", len(df), sheet_name)
    return buffer.getvalue()
