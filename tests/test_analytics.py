from datetime import date

import pytest

from tests.conftest import ADMIN_ID, OTHER_ID, USER_ID
from workshop_tracker.analytics import (
    AnalyticsFilters,
    TimeWindow,
    available_years,
    class_type_distribution,
    expense_breakdown,
    instructor_leaderboard,
    load_analytics_data,
    month_key,
    monthly_trend,
    parse_timestamp,
    shift_month,
    six_month_income,
    summary_statistics,
    top_workshops,
)
from workshop_tracker.errors import DataLoadError


@pytest.fixture
def seeded(fake):
    fake.tables["incomes"] = [
        {"id": 1, "user_id": USER_ID, "name": "Clay Night", "payment": 100, "guest_count": 8,
         "class_type_id": 1, "platform": "In person", "created_at": "2024-03-05T18:00:00+00:00"},
        {"id": 2, "user_id": USER_ID, "name": "Paint & Sip", "payment": 50, "guest_count": 4,
         "class_type_id": 2, "platform": "Zoom", "created_at": "2024-03-20T18:00:00+00:00"},
        {"id": 3, "user_id": OTHER_ID, "name": "Glazing", "payment": 200, "guest_count": 10,
         "class_type_id": 1, "platform": "Zoom", "created_at": "2023-12-01T18:00:00+00:00"},
    ]
    fake.tables["expenses"] = [
        {"id": 1, "user_id": USER_ID, "name": "Clay", "cost": 30, "category": "Event & Consumables",
         "who_paid": "Maya", "created_at": "2024-03-10T09:00:00+00:00"},
        {"id": 2, "user_id": OTHER_ID, "name": "Glaze", "cost": 40, "category": "Shipping",
         "who_paid": "Sam", "created_at": "2023-12-02T09:00:00+00:00"},
    ]
    return fake


# ---------------------- DATES ----------------------

def test_parse_timestamp_handles_junk():
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    assert parse_timestamp("not a date") is None
    assert parse_timestamp("2024-03-05T18:00:00Z").month == 3


def test_month_key_and_shift():
    assert month_key("2024-03-05T18:00:00+00:00") == "2024-03"
    assert shift_month(date(2024, 1, 1), -1) == date(2023, 12, 1)
    assert shift_month(date(2024, 11, 1), 2) == date(2025, 1, 1)


@pytest.mark.parametrize("window, expected", [
    (TimeWindow(), (None, None)),
    (TimeWindow("year", 2024), ("2024-01-01", "2025-01-01")),
    (TimeWindow("month", 2024, 12), ("2024-12-01", "2025-01-01")),
    (TimeWindow("month", 2024), (None, None)),
])
def test_time_window_bounds(window, expected):
    assert window.bounds() == expected


# ---------------------- AGGREGATORS ----------------------

def test_monthly_trend_buckets_by_month():
    incomes = [
        {"payment": 100, "created_at": "2024-03-05T10:00:00+00:00"},
        {"payment": 50, "created_at": "2024-03-20T10:00:00+00:00"},
        {"payment": 70, "created_at": "2024-01-02T10:00:00+00:00"},
    ]
    expenses = [{"cost": 30, "created_at": "2024-03-10T10:00:00+00:00"}]

    trend = monthly_trend(incomes, expenses)

    assert [b["month"] for b in trend] == ["2024-01", "2024-03"]
    assert trend[1] == {"month": "2024-03", "income": 150, "expenses": 30, "profit": 120, "transactions": 2}


def test_monthly_trend_expense_only_month():
    trend = monthly_trend([], [{"cost": 25, "created_at": "2024-02-01"}])
    assert trend == [{"month": "2024-02", "income": 0, "expenses": 25, "profit": -25, "transactions": 0}]


def test_class_type_distribution_defaults_to_other():
    incomes = [
        {"payment": 100, "class_types": {"name": "Pottery"}},
        {"payment": 40, "class_types": None},
        {"payment": 60, "class_types": {"name": "Pottery"}},
    ]
    assert class_type_distribution(incomes) == [
        {"name": "Pottery", "value": 160},
        {"name": "Other", "value": 40},
    ]


def test_instructor_leaderboard_ranks_and_limits():
    incomes = [
        {"user_id": f"u{i}", "payment": i * 10, "guest_count": i, "profiles": {"full_name": f"Instructor {i}"}}
        for i in range(1, 13)
    ]
    incomes.append({"user_id": "u12", "payment": 30, "guest_count": 3, "profiles": {"full_name": "Instructor 12"}})

    board = instructor_leaderboard(incomes)

    assert len(board) == 10
    assert board[0]["name"] == "Instructor 12"
    assert board[0]["total_income"] == 150
    assert board[0]["workshop_count"] == 2
    assert board[0]["avg_per_workshop"] == 75
    assert board[-1]["name"] == "Instructor 3"


def test_leaderboard_unknown_instructor():
    board = instructor_leaderboard([{"user_id": "x", "payment": 5, "profiles": None}])
    assert board[0]["name"] == "Unknown"


def test_summary_statistics():
    stats = summary_statistics(
        [{"payment": 100, "guest_count": 8}, {"payment": 50, "guest_count": 4}],
        [{"cost": 30}],
    )
    assert stats["total_income"] == 150
    assert stats["total_profit"] == 120
    assert stats["total_participants"] == 12
    assert stats["avg_income_per_workshop"] == 75
    assert stats["profit_margin"] == pytest.approx(80.0)


def test_summary_statistics_guards_zero_division():
    stats = summary_statistics([], [{"cost": 10}])
    assert stats["avg_income_per_workshop"] == 0
    assert stats["profit_margin"] == 0
    assert stats["total_profit"] == -10


def test_expense_breakdown_by_category_and_payer():
    expenses = [
        {"cost": 10, "category": "Shipping", "who_paid": "Maya"},
        {"cost": 25, "category": None, "who_paid": "Maya"},
        {"cost": 5, "category": "Shipping", "who_paid": None},
    ]
    assert expense_breakdown(expenses) == [
        {"name": "Uncategorized", "amount": 25},
        {"name": "Shipping", "amount": 15},
    ]
    assert expense_breakdown(expenses, "who_paid", "Unknown")[0] == {"name": "Maya", "amount": 35}


def test_six_month_income_is_zero_filled():
    incomes = [
        {"payment": 100, "created_at": "2024-03-05T10:00:00+00:00"},
        {"payment": 40, "created_at": "2023-11-05T10:00:00+00:00"},
        {"payment": 999, "created_at": "2023-09-05T10:00:00+00:00"},
    ]
    series = six_month_income(incomes, today=date(2024, 3, 15))

    assert [s["month"] for s in series] == ["2023-10", "2023-11", "2023-12", "2024-01", "2024-02", "2024-03"]
    assert [s["income"] for s in series] == [0, 40, 0, 0, 0, 100]
    assert series[0]["label"] == "Oct"


def test_top_workshops_share():
    incomes = [
        {"name": "A", "guest_count": 6},
        {"name": "B", "guest_count": 3},
        {"name": None, "guest_count": 1},
        {"name": "Empty", "guest_count": 0},
    ]
    top = top_workshops(incomes)
    assert top == [
        {"name": "A", "count": 6, "share": 60},
        {"name": "B", "count": 3, "share": 30},
        {"name": "Unknown Workshop", "count": 1, "share": 10},
    ]
    assert top_workshops([{"name": "A", "guest_count": 0}]) == []


def test_available_years(seeded):
    years = available_years(seeded.rows("incomes"), seeded.rows("expenses"))
    assert years == [2024, 2023]


# ---------------------- LOADING ----------------------

def test_non_admin_only_sees_own_rows(seeded, user):
    data = load_analytics_data(seeded, user, AnalyticsFilters(instructor_id=OTHER_ID))
    assert {r["user_id"] for r in data.incomes} == {USER_ID}
    assert {r["user_id"] for r in data.expenses} == {USER_ID}
    assert data.instructors == []


def test_admin_sees_everyone_and_can_filter(seeded, admin):
    everything = load_analytics_data(seeded, admin)
    assert len(everything.incomes) == 3
    assert {p["id"] for p in everything.instructors} == {USER_ID, OTHER_ID, ADMIN_ID}

    one = load_analytics_data(seeded, admin, AnalyticsFilters(instructor_id=OTHER_ID))
    assert [r["id"] for r in one.incomes] == [3]


def test_incomes_carry_embedded_names(seeded, admin):
    data = load_analytics_data(seeded, admin)
    first = next(r for r in data.incomes if r["id"] == 1)
    assert first["profiles"]["full_name"] == "Maya Lee"
    assert first["class_types"]["name"] == "Pottery"


def test_time_window_and_class_type_filters(seeded, admin):
    filters = AnalyticsFilters(time_window=TimeWindow("month", 2024, 3), class_type_id=1)
    data = load_analytics_data(seeded, admin, filters)
    assert [r["id"] for r in data.incomes] == [1]
    assert [r["id"] for r in data.expenses] == [1]


def test_required_fetch_failure_raises(seeded, admin):
    seeded.failing.add("expenses")
    with pytest.raises(DataLoadError):
        load_analytics_data(seeded, admin)


def test_optional_fetch_failure_is_empty(seeded, admin):
    seeded.failing.add("class_types")
    data = load_analytics_data(seeded, admin)
    assert data.class_types == []
    assert len(data.incomes) == 3
