from __future__ import annotations

import logging
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Dict, List, Optional

from supabase import Client

from workshop_tracker.access import Viewer
from workshop_tracker.analytics import month_start, shift_month, parse_timestamp
from workshop_tracker.db import models
from workshop_tracker.errors import DataLoadError

logger = logging.getLogger(__name__)

MAX_INSIGHTS = 8


# ---------------------- DATA CLASSES ----------------------

@dataclass
class Insight:
    id: int
    type: str  # positive | warning | info | achievement | suggestion
    title: str
    message: str
    action: str
    emoji: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class InsightData:
    current_month_incomes: List[Dict[str, Any]] = field(default_factory=list)
    last_month_incomes: List[Dict[str, Any]] = field(default_factory=list)
    current_month_expenses: List[Dict[str, Any]] = field(default_factory=list)
    last_month_expenses: List[Dict[str, Any]] = field(default_factory=list)
    all_incomes: List[Dict[str, Any]] = field(default_factory=list)
    workshops: List[Dict[str, Any]] = field(default_factory=list)


def _total(rows: List[Dict[str, Any]], key: str) -> float:
    return sum((row.get(key) or 0) for row in rows)


# ---------------------- RULES ----------------------

def _income_change(income: float, last_income: float) -> Optional[Insight]:
    if last_income <= 0:
        return None
    change = (income - last_income) / last_income * 100
    if change > 10:
        return Insight(
            1, "positive", "You're Growing! 🚀",
            f"Your workshop income increased by {change:.1f}% compared to last month",
            "Keep up the great work!", "🚀",
        )
    if change < -10:
        return Insight(
            1, "warning", "Income Decline",
            f"Your workshop income decreased by {abs(change):.1f}% compared to last month",
            "Review strategy", "📉",
        )
    return None


def _expense_change(expenses: float, last_expenses: float) -> Optional[Insight]:
    if last_expenses > 0:
        change = (expenses - last_expenses) / last_expenses * 100
        if change > 30:
            return Insight(
                2, "warning", "Expenses Rising Fast",
                f"Your expenses increased by {change:.1f}% compared to last month. "
                "Consider reviewing your spending",
                "Review expenses", "⚠️",
            )
        return None
    if expenses > 0:
        return Insight(
            2, "info", "New Expenses Added",
            "You've started tracking expenses this month. Keep monitoring to optimize costs",
            "Monitor spending", "📊",
        )
    return None


def _expense_ratio(income: float, expenses: float) -> Optional[Insight]:
    if income <= 0 or expenses <= 0:
        return None
    ratio = expenses / income * 100
    if ratio > 50:
        return Insight(
            3, "warning", "High Expense Ratio",
            f"Expenses are {ratio:.1f}% of income this month",
            "Review costs", "💰",
        )
    return None


def _attendance(workshops: List[Dict[str, Any]]) -> Optional[Insight]:
    # workshops arrive newest first
    for workshop in workshops[:10]:
        capacity = workshop.get("capacity")
        attendance = workshop.get("attendance")
        if not capacity or not attendance:
            continue
        rate = attendance / capacity * 100
        if rate > 90:
            return Insight(
                4, "achievement", "Popular Workshop! 🌟",
                f'"{workshop.get("name", "")}" had {rate:.1f}% attendance rate - '
                "your workshops are in high demand!",
                "Schedule more sessions", "🌟",
            )
    return None


def _popular_workshop(incomes: List[Dict[str, Any]]) -> Optional[Insight]:
    best: Optional[Dict[str, Any]] = None
    best_count = 0
    for income in incomes:
        count = income.get("guest_count") or 0
        if count > best_count:
            best, best_count = income, count
    if best is None:
        return None

    average = _total(incomes, "guest_count") / len(incomes)
    if best_count > average * 1.5:
        return Insight(
            5, "suggestion", "Popular Workshop Alert",
            f"{best.get('name', '')} had high attendance ({best_count} participants) - "
            "consider adding more sessions",
            "Schedule more sessions", "🌟",
        )
    return None


def _milestone(total_participants: int) -> Optional[Insight]:
    if total_participants > 1000:
        return Insight(
            6, "achievement", "🎉 1000+ Students Milestone!",
            f"Congratulations! You've taught {total_participants:,} creative souls - "
            "you're making a real impact!",
            "Celebrate your success!", "🎉",
        )
    if total_participants > 500:
        return Insight(
            6, "achievement", "Great Progress! 👏",
            f"Amazing! You've reached {total_participants} participants - "
            "you're building something special!",
            "Keep growing!", "👏",
        )
    if total_participants > 100:
        return Insight(
            6, "positive", "Growing Community",
            f"You've reached {total_participants} participants! Your workshops are making an impact",
            "Keep it up!", "🌱",
        )
    return None


def _platform(incomes: List[Dict[str, Any]]) -> Optional[Insight]:
    counts: Dict[str, int] = {}
    for income in incomes:
        platform = income.get("platform") or "Unknown"
        counts[platform] = counts.get(platform, 0) + 1
    if not counts:
        return None

    # dicts keep insertion order, so max() keeps the first platform on ties
    top = max(counts, key=counts.get)
    if top == "Unknown":
        return None
    return Insight(
        7, "info", "Platform Preference",
        f"{top} is your most used platform with {counts[top]} workshops",
        "Optimize platform", "🖥️",
    )


def _profit_margin(income: float, expenses: float) -> Optional[Insight]:
    if income <= 0 or expenses <= 0:
        return None
    margin = (income - expenses) / income * 100
    if margin > 70:
        return Insight(
            8, "positive", "Excellent Profit Margin! 💚",
            f"Your profit margin is {margin:.1f}% - excellent financial performance",
            "Maintain efficiency", "💚",
        )
    if margin < 20:
        return Insight(
            8, "warning", "Low Profit Margin",
            f"Your profit margin is {margin:.1f}% - consider optimizing costs or increasing prices",
            "Optimize margins", "📉",
        )
    return None


def generate_insights(data: InsightData) -> List[Insight]:
    income = _total(data.current_month_incomes, "payment")
    last_income = _total(data.last_month_incomes, "payment")
    expenses = _total(data.current_month_expenses, "cost")
    last_expenses = _total(data.last_month_expenses, "cost")
    participants = int(_total(data.all_incomes, "guest_count"))

    candidates = [
        _income_change(income, last_income),
        _expense_change(expenses, last_expenses),
        _expense_ratio(income, expenses),
        _attendance(data.workshops),
        _popular_workshop(data.all_incomes),
        _milestone(participants),
        _platform(data.all_incomes),
        _profit_margin(income, expenses),
    ]
    return [c for c in candidates if c is not None][:MAX_INSIGHTS]


# ---------------------- LOADING ----------------------

def _same_month(row: Dict[str, Any], month: date) -> bool:
    ts = parse_timestamp(row.get("created_at"))
    return ts is not None and ts.year == month.year and ts.month == month.month


def load_insight_data(client: Client, viewer: Viewer, today: Optional[date] = None) -> InsightData:
    """Fetches the viewer's own rows; insights are always personal, admin or not."""
    today = today or date.today()
    current = month_start(today)
    previous = shift_month(current, -1)

    try:
        all_incomes = (
            client.table(models.INCOMES)
            .select("payment, created_at, name, platform, guest_count")
            .eq("user_id", viewer.id)
            .execute()
        ).data or []
        current_expenses = (
            client.table(models.EXPENSES)
            .select("cost, name, created_at")
            .eq("user_id", viewer.id)
            .gte("created_at", current.isoformat())
            .execute()
        ).data or []
        last_expenses = (
            client.table(models.EXPENSES)
            .select("cost, name, created_at")
            .eq("user_id", viewer.id)
            .gte("created_at", previous.isoformat())
            .lt("created_at", current.isoformat())
            .execute()
        ).data or []
    except Exception as e:
        logger.error("Failed to load insight data: %s", e)
        raise DataLoadError(str(e)) from e

    try:
        workshops = (
            client.table(models.WORKSHOPS)
            .select("*")
            .eq("instructor_id", viewer.id)
            .order("date", desc=True)
            .execute()
        ).data or []
    except Exception as e:
        logger.warning("Workshops unavailable, skipping attendance insights: %s", e)
        workshops = []

    return InsightData(
        current_month_incomes=[r for r in all_incomes if _same_month(r, current)],
        last_month_incomes=[r for r in all_incomes if _same_month(r, previous)],
        current_month_expenses=current_expenses,
        last_month_expenses=last_expenses,
        all_incomes=all_incomes,
        workshops=workshops,
    )
