from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd
from supabase import Client

from workshop_tracker.access import Viewer, scoped_owner
from workshop_tracker.db import models
from workshop_tracker.errors import DataLoadError
from workshop_tracker.profiles import list_instructors

logger = logging.getLogger(__name__)

INCOME_SELECT = "*, profiles:user_id(full_name, email), class_types:class_type_id(name)"
EXPENSE_SELECT = "*, profiles:user_id(full_name, email)"


# ---------------------- DATES ----------------------

def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def month_key(value: Any) -> Optional[str]:
    ts = parse_timestamp(value)
    if ts is None:
        return None
    return f"{ts.year:04d}-{ts.month:02d}"


def month_start(day: date) -> date:
    return date(day.year, day.month, 1)


def shift_month(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


# ---------------------- FILTERS ----------------------

@dataclass
class TimeWindow:
    kind: str = "all"  # all | year | month
    year: Optional[int] = None
    month: Optional[int] = None

    def bounds(self) -> Tuple[Optional[str], Optional[str]]:
        """Returns the [start, end) created_at range as ISO dates, or (None, None)."""
        if self.kind == "year" and self.year:
            return date(self.year, 1, 1).isoformat(), date(self.year + 1, 1, 1).isoformat()
        if self.kind == "month" and self.year and self.month:
            start = date(self.year, self.month, 1)
            return start.isoformat(), shift_month(start, 1).isoformat()
        return None, None


@dataclass
class AnalyticsFilters:
    time_window: TimeWindow = field(default_factory=TimeWindow)
    class_type_id: Optional[int] = None
    instructor_id: Optional[str] = None


@dataclass
class AnalyticsData:
    incomes: List[Dict[str, Any]] = field(default_factory=list)
    expenses: List[Dict[str, Any]] = field(default_factory=list)
    class_types: List[Dict[str, Any]] = field(default_factory=list)
    instructors: List[Dict[str, Any]] = field(default_factory=list)


# ---------------------- AGGREGATORS ----------------------

def _amount(row: Dict[str, Any], key: str) -> float:
    return row.get(key) or 0


def monthly_trend(incomes: List[Dict[str, Any]], expenses: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One bucket per month that has rows, oldest first. Empty months are skipped."""
    buckets: Dict[str, Dict[str, Any]] = {}

    def bucket(key: str) -> Dict[str, Any]:
        if key not in buckets:
            buckets[key] = {"month": key, "income": 0, "expenses": 0, "profit": 0, "transactions": 0}
        return buckets[key]

    for income in incomes:
        key = month_key(income.get("created_at"))
        if key is None:
            continue
        b = bucket(key)
        b["income"] += _amount(income, "payment")
        b["transactions"] += 1

    for expense in expenses:
        key = month_key(expense.get("created_at"))
        if key is None:
            continue
        bucket(key)["expenses"] += _amount(expense, "cost")

    result = []
    for key in sorted(buckets):
        b = buckets[key]
        b["profit"] = b["income"] - b["expenses"]
        result.append(b)
    return result


def class_type_distribution(incomes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    totals: Dict[str, float] = {}
    for income in incomes:
        class_type = income.get("class_types") or {}
        name = class_type.get("name") or "Other"
        totals[name] = totals.get(name, 0) + _amount(income, "payment")
    rows = [{"name": name, "value": value} for name, value in totals.items()]
    return sorted(rows, key=lambda r: r["value"], reverse=True)


def instructor_leaderboard(incomes: List[Dict[str, Any]], limit: int = 10) -> List[Dict[str, Any]]:
    board: Dict[str, Dict[str, Any]] = {}
    for income in incomes:
        user_id = income.get("user_id")
        if user_id not in board:
            owner = income.get("profiles") or {}
            board[user_id] = {
                "user_id": user_id,
                "name": owner.get("full_name") or "Unknown",
                "total_income": 0,
                "workshop_count": 0,
                "total_participants": 0,
                "avg_per_workshop": 0,
            }
        entry = board[user_id]
        entry["total_income"] += _amount(income, "payment")
        entry["workshop_count"] += 1
        entry["total_participants"] += _amount(income, "guest_count")

    for entry in board.values():
        entry["avg_per_workshop"] = entry["total_income"] / entry["workshop_count"]

    ranked = sorted(board.values(), key=lambda e: e["total_income"], reverse=True)
    return ranked[:limit]


def summary_statistics(incomes: List[Dict[str, Any]], expenses: List[Dict[str, Any]]) -> Dict[str, Any]:
    total_income = sum(_amount(r, "payment") for r in incomes)
    total_expenses = sum(_amount(r, "cost") for r in expenses)
    total_profit = total_income - total_expenses
    total_workshops = len(incomes)
    return {
        "total_income": total_income,
        "total_expenses": total_expenses,
        "total_profit": total_profit,
        "total_workshops": total_workshops,
        "total_participants": sum(_amount(r, "guest_count") for r in incomes),
        "avg_income_per_workshop": total_income / total_workshops if total_workshops > 0 else 0,
        "profit_margin": total_profit / total_income * 100 if total_income > 0 else 0,
    }


def expense_breakdown(
    expenses: List[Dict[str, Any]], field_name: str = "category", default: str = "Uncategorized"
) -> List[Dict[str, Any]]:
    """Totals cost by category or who_paid, largest first."""
    totals: Dict[str, float] = {}
    for expense in expenses:
        key = expense.get(field_name) or default
        totals[key] = totals.get(key, 0) + _amount(expense, "cost")
    rows = [{"name": name, "amount": amount} for name, amount in totals.items()]
    return sorted(rows, key=lambda r: r["amount"], reverse=True)


def six_month_income(incomes: List[Dict[str, Any]], today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Income for the current and previous five calendar months, zero-filled."""
    today = today or date.today()
    current = month_start(today)
    series: Dict[str, Dict[str, Any]] = {}
    for offset in range(5, -1, -1):
        m = shift_month(current, -offset)
        key = f"{m.year:04d}-{m.month:02d}"
        series[key] = {"month": key, "label": m.strftime("%b"), "income": 0}

    for income in incomes:
        key = month_key(income.get("created_at"))
        if key in series:
            series[key]["income"] += _amount(income, "payment")
    return list(series.values())


def top_workshops(incomes: List[Dict[str, Any]], limit: int = 4) -> List[Dict[str, Any]]:
    total = sum(_amount(r, "guest_count") for r in incomes)
    if total == 0:
        return []
    rows = [
        {
            "name": income.get("name") or "Unknown Workshop",
            "count": income["guest_count"],
            "share": round(income["guest_count"] / total * 100),
        }
        for income in incomes
        if (income.get("guest_count") or 0) > 0
    ]
    return sorted(rows, key=lambda r: r["count"], reverse=True)[:limit]


def available_years(incomes: List[Dict[str, Any]], expenses: List[Dict[str, Any]]) -> List[int]:
    years = set()
    for row in list(incomes) + list(expenses):
        ts = parse_timestamp(row.get("created_at"))
        if ts is not None:
            years.add(ts.year)
    return sorted(years, reverse=True)


# ---------------------- LOADING ----------------------

def _apply_window(query, window: TimeWindow):
    start, end = window.bounds()
    if start:
        query = query.gte("created_at", start).lt("created_at", end)
    return query


def fetch_incomes(client: Client, viewer: Viewer, filters: AnalyticsFilters) -> List[Dict[str, Any]]:
    query = client.table(models.INCOMES).select(INCOME_SELECT).order("created_at")
    owner = scoped_owner(viewer, filters.instructor_id)
    if owner:
        query = query.eq("user_id", owner)
    query = _apply_window(query, filters.time_window)
    if filters.class_type_id:
        query = query.eq("class_type_id", filters.class_type_id)
    return query.execute().data or []


def fetch_expenses(client: Client, viewer: Viewer, filters: AnalyticsFilters) -> List[Dict[str, Any]]:
    query = client.table(models.EXPENSES).select(EXPENSE_SELECT).order("created_at")
    owner = scoped_owner(viewer, filters.instructor_id)
    if owner:
        query = query.eq("user_id", owner)
    query = _apply_window(query, filters.time_window)
    return query.execute().data or []


def fetch_class_types(client: Client) -> List[Dict[str, Any]]:
    return client.table(models.CLASS_TYPES).select("*").order("name").execute().data or []


def _optional(name: str, fn: Callable[[], List[Dict[str, Any]]]) -> Callable[[], List[Dict[str, Any]]]:
    def run() -> List[Dict[str, Any]]:
        try:
            return fn()
        except Exception as e:
            logger.warning("Optional fetch %s failed, continuing without it: %s", name, e)
            return []
    return run


def load_analytics_data(client: Client, viewer: Viewer, filters: Optional[AnalyticsFilters] = None) -> AnalyticsData:
    """
    Runs the four dashboard fetches side by side and waits for all of them.
    Incomes and expenses are required; any failure there raises DataLoadError.
    """
    filters = filters or AnalyticsFilters()
    with ThreadPoolExecutor(max_workers=4, thread_name_prefix="analytics") as pool:
        incomes = pool.submit(fetch_incomes, client, viewer, filters)
        expenses = pool.submit(fetch_expenses, client, viewer, filters)
        class_types = pool.submit(_optional("class_types", lambda: fetch_class_types(client)))
        instructors = pool.submit(_optional("instructors", lambda: list_instructors(client, viewer)))

        try:
            data = AnalyticsData(
                incomes=incomes.result(),
                expenses=expenses.result(),
                class_types=class_types.result(),
                instructors=instructors.result(),
            )
        except Exception as e:
            logger.error("Error loading analytics data: %s", e)
            raise DataLoadError(f"Failed to load analytics data: {e}") from e
    return data
