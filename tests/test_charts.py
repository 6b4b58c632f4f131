from datetime import date

from workshop_tracker import charts
from workshop_tracker.analytics import instructor_leaderboard, monthly_trend, six_month_income


def test_empty_inputs_draw_nothing():
    assert charts.monthly_trend_chart([]) is None
    assert charts.distribution_pie([], "name", "value", "Income by Class Type") is None
    assert charts.leaderboard_bar([]) is None
    assert charts.category_bar([], "Expenses by Category") is None


def test_monthly_trend_chart_has_three_series():
    trend = monthly_trend(
        [{"payment": 100, "created_at": "2024-03-05"}],
        [{"cost": 30, "created_at": "2024-03-10"}],
    )
    fig = charts.monthly_trend_chart(trend)
    assert [t.name for t in fig.data] == ["income", "expenses", "profit"]


def test_six_month_bar_always_draws():
    fig = charts.six_month_bar(six_month_income([], today=date(2024, 3, 15)))
    assert len(fig.data[0].x) == 6


def test_leaderboard_bar():
    board = instructor_leaderboard([{"user_id": "u", "payment": 10, "profiles": {"full_name": "Maya Lee"}}])
    assert charts.leaderboard_bar(board) is not None
